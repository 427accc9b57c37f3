"""
Enums for Stockkeeper models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class MovementReason(models.TextChoices):
    """Why on-hand quantity changed."""
    INITIAL = 'INITIAL', _('Stock initial')
    ADJUSTMENT = 'ADJUSTMENT', _('Ajustement')
    SALE = 'SALE', _('Vente')
    RETURN = 'RETURN', _('Retour')
    CORRECTION = 'CORRECTION', _('Correction')
    SUPPLY = 'SUPPLY', _('Approvisionnement')


class MovementStatus(models.TextChoices):
    """Movement lifecycle. ACTIVE → CANCELLED is the only transition."""
    ACTIVE = 'ACTIVE', _('Actif')
    CANCELLED = 'CANCELLED', _('Annulé')


class SupplyStatus(models.TextChoices):
    """
    Aggregate status of a purchase order.

    COMMANDE_INITIEE is only ever the creation state; once a line changes
    the order moves to one of the three derived states.
    """
    COMMANDE_INITIEE = 'COMMANDE_INITIEE', _('Commande initiée')
    RECEPTIONNE = 'RECEPTIONNE', _('Réceptionné')
    PARTIELLEMENT_RECEPTIONNE = 'PARTIELLEMENT_RECEPTIONNE', _('Partiellement réceptionné')
    NON_RECEPTIONNE = 'NON_RECEPTIONNE', _('Non réceptionné')


class SupplyLineStatus(models.TextChoices):
    """Status of one order line, derived from (ordered, received)."""
    EN_ATTENTE = 'EN_ATTENTE', _('En attente')
    RECEPTIONNE = 'RECEPTIONNE', _('Réceptionné')
    PARTIELLEMENT_RECEPTIONNE = 'PARTIELLEMENT_RECEPTIONNE', _('Partiellement réceptionné')
    NON_RECEPTIONNE = 'NON_RECEPTIONNE', _('Non réceptionné')  # Abandoned by an operator


class SaleStatus(models.TextChoices):
    ACTIVE = 'ACTIVE', _('Active')
    CANCELLED = 'CANCELLED', _('Annulée')


class AlertKind(models.TextChoices):
    LOW_STOCK = 'LOW_STOCK', _('Stock bas')
    OUT_OF_STOCK = 'OUT_OF_STOCK', _('Rupture de stock')
