"""
Stock alerts — low-stock detection and notification.

Usage:
    from stockkeeper.services.alerts import check_alerts

    # Called by the stock service after every mutation
    notify_if_low(presentation)

    # Or scan everything (cron, dashboard)
    triggered = check_alerts()
    # Returns list of (Presentation, quantity) tuples
"""

import logging

from django.db import transaction
from django.utils import timezone

from stockkeeper.adapters.notifiers import get_notifier
from stockkeeper.conf import stockkeeper_settings
from stockkeeper.models.alert import StockAlert
from stockkeeper.models.catalog import Presentation
from stockkeeper.models.enums import AlertKind
from stockkeeper.protocols.notifications import LowStockEvent

logger = logging.getLogger('stockkeeper')


def _message(presentation: Presentation, kind: str) -> str:
    if kind == AlertKind.OUT_OF_STOCK:
        return f"Rupture de stock pour {presentation}"
    return f"Stock bas pour {presentation} ({presentation.quantity} unités restantes)"


def notify_if_low(presentation: Presentation) -> StockAlert | None:
    """
    Raise a low-stock alert when quantity <= low_stock_threshold.

    Stores at most one unread alert per presentation and kind; the
    notifier is called on every qualifying mutation, after commit.

    Returns:
        The unread alert for this state, or None when stock is fine
    """
    if not stockkeeper_settings.LOW_STOCK_ALERTS:
        return None

    quantity = presentation.quantity
    if quantity > presentation.low_stock_threshold:
        return None

    kind = AlertKind.OUT_OF_STOCK if quantity <= 0 else AlertKind.LOW_STOCK

    alert = StockAlert.objects.unread().filter(presentation=presentation, kind=kind).first()
    if alert is None:
        alert = StockAlert.objects.create(
            presentation=presentation,
            product_id=presentation.product_id,
            kind=kind,
            quantity=quantity,
            threshold=presentation.low_stock_threshold,
            message=_message(presentation, kind),
        )

    event = LowStockEvent(
        presentation_id=presentation.pk,
        product_id=presentation.product_id,
        product_name=presentation.product.name,
        quantity=quantity,
        threshold=presentation.low_stock_threshold,
        kind=str(kind),
        alert_id=alert.pk,
    )
    transaction.on_commit(lambda: get_notifier().notify(event))

    logger.warning(
        "stock.alert.triggered",
        extra={
            "alert_id": alert.pk,
            "presentation_id": presentation.pk,
            "quantity": quantity,
            "threshold": presentation.low_stock_threshold,
            "kind": str(kind),
        },
    )
    return alert


def check_alerts(presentation=None) -> list[tuple[Presentation, int]]:
    """
    Scan presentations at or below their threshold.

    Args:
        presentation: Optional presentation to check (None = all).

    Returns:
        List of (presentation, current_quantity) tuples.
    """
    qs = Presentation.objects.low_stock().select_related('product')
    if presentation is not None:
        qs = qs.filter(pk=getattr(presentation, 'pk', presentation))
    return [(p, p.quantity) for p in qs]


def unread_alerts():
    return StockAlert.objects.unread().select_related('presentation', 'product')


def mark_read(alert) -> StockAlert:
    """Mark one alert as read."""
    pk = getattr(alert, 'pk', alert)
    StockAlert.objects.filter(pk=pk).update(is_read=True)
    if isinstance(alert, StockAlert):
        alert.is_read = True
        return alert
    return StockAlert.objects.get(pk=pk)


def mark_all_read() -> int:
    """Mark every unread alert as read. Returns how many changed."""
    count = StockAlert.objects.unread().update(is_read=True)
    logger.info("stock.alert.read_all", extra={"count": count, "at": timezone.now().isoformat()})
    return count
