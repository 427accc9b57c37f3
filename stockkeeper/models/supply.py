"""
Supply and SupplyLine models — purchase orders received over time.
"""

from django.db import models
from django.db.models import F, Q
from django.utils.translation import gettext_lazy as _

from stockkeeper.models.enums import SupplyLineStatus, SupplyStatus


class Supply(models.Model):
    """
    Purchase order sent to a vendor.

    LIFECYCLE:

        COMMANDE_INITIEE ──(first receipt / abandon)──► PARTIELLEMENT_RECEPTIONNE
                                                      ► RECEPTIONNE
                                                      ► NON_RECEPTIONNE

    Ordered quantities are fixed at creation. Only received quantities,
    prices and statuses evolve.
    """

    description = models.TextField(blank=True, default='', verbose_name=_('Description'))
    status = models.CharField(
        max_length=30,
        choices=SupplyStatus.choices,
        default=SupplyStatus.COMMANDE_INITIEE,
        db_index=True,
        verbose_name=_('Statut'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Approvisionnement')
        verbose_name_plural = _('Approvisionnements')
        ordering = ['-created_at']

    @property
    def is_deletable(self) -> bool:
        return self.status == SupplyStatus.COMMANDE_INITIEE or not self.lines.exists()

    def __str__(self) -> str:
        return f"Approvisionnement #{self.pk} ({self.get_status_display()})"


class SupplyLine(models.Model):
    """One ordered presentation within a supply, received incrementally."""

    supply = models.ForeignKey(
        Supply,
        on_delete=models.CASCADE,
        related_name='lines',
        verbose_name=_('Approvisionnement'),
    )
    product = models.ForeignKey(
        'stockkeeper.Product',
        on_delete=models.PROTECT,
        related_name='supply_lines',
        verbose_name=_('Produit'),
    )
    presentation = models.ForeignKey(
        'stockkeeper.Presentation',
        on_delete=models.PROTECT,
        related_name='supply_lines',
        verbose_name=_('Présentation'),
    )

    ordered_quantity = models.PositiveIntegerField(verbose_name=_('Quantité commandée'))
    received_quantity = models.PositiveIntegerField(default=0, verbose_name=_('Quantité reçue'))

    # Negotiated prices
    purchase_price = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True, verbose_name=_('Prix d\'achat'),
    )
    selling_price = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True, verbose_name=_('Prix de vente'),
    )

    status = models.CharField(
        max_length=30,
        choices=SupplyLineStatus.choices,
        default=SupplyLineStatus.EN_ATTENTE,
        verbose_name=_('Statut'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Ligne d\'approvisionnement')
        verbose_name_plural = _('Lignes d\'approvisionnement')
        ordering = ['pk']
        constraints = [
            models.CheckConstraint(
                condition=Q(ordered_quantity__gt=0),
                name='supply_line_ordered_positive',
            ),
            models.CheckConstraint(
                condition=Q(received_quantity__lte=F('ordered_quantity')),
                name='supply_line_received_within_ordered',
            ),
        ]

    @property
    def remaining(self) -> int:
        return self.ordered_quantity - self.received_quantity

    @property
    def is_abandoned(self) -> bool:
        return self.status == SupplyLineStatus.NON_RECEPTIONNE

    def __str__(self) -> str:
        return f"{self.presentation}: {self.received_quantity}/{self.ordered_quantity}"
