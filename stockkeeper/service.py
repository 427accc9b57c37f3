"""
Stock Service — The single public interface for all stock operations.

Usage:
    from stockkeeper import stock, InventoryError

    stock.record_initial_stock(presentation, 100)
    stock.record_sale(presentation, 30)
    stock.current_quantity(presentation)  # 70
"""

from stockkeeper.services import alerts
from stockkeeper.services.catalog import Catalog
from stockkeeper.services.ledger import StockLedger
from stockkeeper.services.movements import StockMovements
from stockkeeper.services.prices import PriceSet
from stockkeeper.services.queries import StockQueries
from stockkeeper.services.sales import StockSales
from stockkeeper.services.supplies import SupplyFulfillment


class Stock(
    StockQueries,
    StockLedger,
    StockMovements,
    PriceSet,
    SupplyFulfillment,
    StockSales,
    Catalog,
):
    """
    Single interface for all stock operations.

    Parameter convention: (subject, quantity, ...)
    Follows natural language: "Sell 30 of this presentation"

    IMPORTANT: All state-changing methods use atomic transactions
    with appropriate locking. See each method's docstring.
    """

    # ══════════════════════════════════════════════════════════════
    # ALERTS
    # ══════════════════════════════════════════════════════════════

    check_alerts = staticmethod(alerts.check_alerts)
    unread_alerts = staticmethod(alerts.unread_alerts)
    mark_alert_read = staticmethod(alerts.mark_read)
    mark_all_alerts_read = staticmethod(alerts.mark_all_read)
