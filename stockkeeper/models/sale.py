"""
Sale model — a recorded sale that took stock out.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from stockkeeper.models.enums import SaleStatus


class Sale(models.Model):
    """
    A sale of one presentation.

    Created together with its SALE movement. Cancelling keeps the row
    (status CANCELLED) and puts the quantity back with a CORRECTION movement.
    """

    presentation = models.ForeignKey(
        'stockkeeper.Presentation',
        on_delete=models.PROTECT,
        related_name='sales',
        verbose_name=_('Présentation'),
    )
    product = models.ForeignKey(
        'stockkeeper.Product',
        on_delete=models.PROTECT,
        related_name='sales',
        verbose_name=_('Produit'),
    )
    quantity = models.PositiveIntegerField(verbose_name=_('Quantité'))
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, verbose_name=_('Prix unitaire'))
    total_amount = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal('0'), verbose_name=_('Montant total'),
    )
    sale_date = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Date de vente'))
    client_name = models.CharField(max_length=200, blank=True, default='', verbose_name=_('Client'))
    description = models.TextField(blank=True, default='', verbose_name=_('Description'))
    status = models.CharField(
        max_length=20,
        choices=SaleStatus.choices,
        default=SaleStatus.ACTIVE,
        db_index=True,
        verbose_name=_('Statut'),
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Créée par'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Vente')
        verbose_name_plural = _('Ventes')
        ordering = ['-sale_date']

    def __str__(self) -> str:
        return f"Vente #{self.pk}: {self.quantity}x {self.presentation} ({self.total_amount})"
