"""
SellingPrice model — coexisting sale prices of a presentation.
"""

from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _


class SellingPrice(models.Model):
    """
    One of several sale prices of a presentation ("Détail", "Gros", ...).

    A presentation with prices has exactly one default. The database
    guarantees "at most one" through a partial unique constraint; the
    price set service guarantees "at least one".
    """

    presentation = models.ForeignKey(
        'stockkeeper.Presentation',
        on_delete=models.CASCADE,
        related_name='selling_prices',
        verbose_name=_('Présentation'),
    )
    label = models.CharField(max_length=100, verbose_name=_('Libellé'))
    price = models.DecimalField(max_digits=12, decimal_places=2, verbose_name=_('Prix'))
    is_default = models.BooleanField(default=False, verbose_name=_('Prix par défaut'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Prix de vente')
        verbose_name_plural = _('Prix de vente')
        ordering = ['-is_default', 'label']
        constraints = [
            models.UniqueConstraint(
                fields=['presentation'],
                condition=Q(is_default=True),
                name='unique_default_selling_price',
            ),
            models.CheckConstraint(
                condition=Q(price__gt=Decimal('0')),
                name='selling_price_positive',
            ),
        ]

    def __str__(self) -> str:
        star = ' *' if self.is_default else ''
        return f"{self.label}: {self.price}{star}"
