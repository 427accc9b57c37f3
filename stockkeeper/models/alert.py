"""
StockAlert model — stored low-stock notifications.

Usage:
    # Unread alerts for the dashboard
    StockAlert.objects.unread()

    # Rows are written by the stock service when a mutation leaves
    # quantity <= low_stock_threshold; see stockkeeper.services.alerts.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from stockkeeper.models.enums import AlertKind


class StockAlertQuerySet(models.QuerySet):

    def unread(self):
        return self.filter(is_read=False)

    def for_presentation(self, presentation):
        return self.filter(presentation=presentation)


class StockAlert(models.Model):
    """
    Low-stock or out-of-stock alert raised by a stock mutation.

    Quantity and threshold are snapshots taken when the alert fired.
    """

    presentation = models.ForeignKey(
        'stockkeeper.Presentation',
        on_delete=models.CASCADE,
        related_name='alerts',
        verbose_name=_('Présentation'),
    )
    product = models.ForeignKey(
        'stockkeeper.Product',
        on_delete=models.CASCADE,
        related_name='alerts',
        verbose_name=_('Produit'),
    )
    kind = models.CharField(
        max_length=20,
        choices=AlertKind.choices,
        verbose_name=_('Type'),
    )
    quantity = models.IntegerField(verbose_name=_('Stock'))
    threshold = models.PositiveIntegerField(verbose_name=_('Seuil'))
    message = models.CharField(max_length=255, verbose_name=_('Message'))
    is_read = models.BooleanField(default=False, db_index=True, verbose_name=_('Lue'))
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_('Créée le'))

    objects = StockAlertQuerySet.as_manager()

    class Meta:
        verbose_name = _('Alerte de stock')
        verbose_name_plural = _('Alertes de stock')
        ordering = ['-created_at', '-pk']

    def __str__(self) -> str:
        return self.message
