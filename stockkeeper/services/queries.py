"""
Stock queries — read-only operations.

All methods are classmethods on Stock and use no locking.
"""

from datetime import datetime

from stockkeeper.models.catalog import Presentation
from stockkeeper.models.enums import SaleStatus, SupplyStatus
from stockkeeper.models.sale import Sale
from stockkeeper.models.supply import Supply


class StockQueries:
    """Read-only stock query methods."""

    @classmethod
    def list_presentations(cls, product=None, low_stock_only: bool = False):
        """Presentations with their product, optionally only those at or below threshold."""
        qs = Presentation.objects.select_related('product')
        if product is not None:
            qs = qs.filter(product_id=getattr(product, 'pk', product))
        if low_stock_only:
            qs = qs.low_stock()
        return qs

    @classmethod
    def pending_supplies(cls):
        """Orders still waiting for goods (not fully received, not abandoned)."""
        return Supply.objects.filter(
            status__in=[SupplyStatus.COMMANDE_INITIEE, SupplyStatus.PARTIELLEMENT_RECEPTIONNE]
        ).prefetch_related('lines__presentation__product')

    @classmethod
    def list_sales(cls, start: datetime | None = None, end: datetime | None = None,
                   status: str = SaleStatus.ACTIVE):
        """Sales between two dates, newest first."""
        qs = Sale.objects.select_related('presentation', 'product').filter(status=status)
        if start is not None:
            qs = qs.filter(sale_date__gte=start)
        if end is not None:
            qs = qs.filter(sale_date__lte=end)
        return qs.order_by('-sale_date')
