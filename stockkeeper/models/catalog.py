"""
Product and Presentation models — what is stocked.
"""

import logging
from decimal import Decimal

from django.core.validators import MinValueValidator, RegexValidator
from django.db import models
from django.db.models import Q, Sum
from django.db.models.functions import Coalesce
from django.utils.translation import gettext_lazy as _

logger = logging.getLogger('stockkeeper')


class Product(models.Model):
    """A catalog product. Stock lives on its presentations."""

    name = models.CharField(max_length=200, verbose_name=_('Nom'))
    description = models.TextField(blank=True, default='', verbose_name=_('Description'))
    category = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Catégorie'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Produit')
        verbose_name_plural = _('Produits')
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


class PresentationQuerySet(models.QuerySet):
    """QuerySet with stock filters for Presentation."""

    def low_stock(self):
        """Presentations at or below their low-stock threshold."""
        return self.filter(_quantity__lte=models.F('low_stock_threshold'))

    def out_of_stock(self):
        return self.filter(_quantity__lte=0)


class Presentation(models.Model):
    """
    A sellable unit of a product (the variant).

    Performance:
    - _quantity is a cache maintained by the ledger (StockMovement)
    - Read is O(1), not O(N)
    - Use recalculate() for audit/correction

    Never write _quantity directly; go through the stock service.
    """

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name='presentations',
        verbose_name=_('Produit'),
    )
    size = models.CharField(max_length=50, blank=True, default='', verbose_name=_('Taille'))
    unit = models.CharField(max_length=50, verbose_name=_('Unité'))
    purchase_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0'),
        validators=[MinValueValidator(Decimal('0'))],
        verbose_name=_('Prix d\'achat'),
    )

    # Quantity cache (updated atomically by the ledger)
    _quantity = models.IntegerField(default=0, verbose_name=_('Stock'))

    low_stock_threshold = models.PositiveIntegerField(
        default=0,
        verbose_name=_('Seuil de stock bas'),
        help_text=_('Une alerte est émise quand le stock descend à ce niveau.'),
    )
    sku = models.CharField(
        max_length=64,
        blank=True,
        default='',
        validators=[RegexValidator(
            r'^[A-Z0-9-]+$',
            _('SKU invalide. Utilisez des majuscules, chiffres et tirets'),
        )],
        verbose_name=_('SKU'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PresentationQuerySet.as_manager()

    class Meta:
        verbose_name = _('Présentation')
        verbose_name_plural = _('Présentations')
        ordering = ['product', 'unit']
        constraints = [
            models.UniqueConstraint(
                fields=['sku'],
                condition=~Q(sku=''),
                name='unique_presentation_sku',
            ),
        ]

    @property
    def quantity(self) -> int:
        """On-hand quantity — O(1) cache read."""
        return self._quantity

    @property
    def is_low_stock(self) -> bool:
        return self._quantity <= self.low_stock_threshold

    def ledger_quantity(self) -> int:
        """Sum of ACTIVE movement deltas, read from the ledger."""
        from stockkeeper.models.enums import MovementStatus

        totals = self.movements.filter(status=MovementStatus.ACTIVE).aggregate(
            qty_in=Coalesce(Sum('quantity_in'), 0, output_field=models.IntegerField()),
            qty_out=Coalesce(Sum('quantity_out'), 0, output_field=models.IntegerField()),
        )
        return totals['qty_in'] - totals['qty_out']

    def recalculate(self) -> int:
        """
        Recalculate quantity from ACTIVE movements.

        Use for:
        - Integrity audit
        - Correction after detected inconsistency

        Returns:
            New calculated quantity
        """
        total = self.ledger_quantity()

        if total != self._quantity:
            old = self._quantity
            self._quantity = total
            self.save(update_fields=['_quantity', 'updated_at'])
            logger.warning(
                "Presentation %s recalculated: %s → %s (diff: %s)",
                self.pk, old, total, total - old,
            )

        return total

    def __str__(self) -> str:
        label = f"{self.size} {self.unit}".strip()
        return f"{self.product.name} — {label}"
