"""
Stockkeeper notifier adapters — low-stock delivery backends.

This module loads the configured LowStockNotifier from settings.

Usage:
    from stockkeeper.adapters import get_notifier

    notifier = get_notifier()
    notifier.notify(event)

Settings:
    STOCKKEEPER = {
        "NOTIFIER": "myshop.alerts.SmsNotifier",
    }

When NOTIFIER is not configured the LoggingNotifier is used.
"""

from __future__ import annotations

import logging
import threading

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from stockkeeper.conf import stockkeeper_settings
from stockkeeper.protocols.notifications import LowStockEvent, LowStockNotifier

logger = logging.getLogger('stockkeeper')


class LoggingNotifier:
    """
    Default notifier: writes a warning to the 'stockkeeper' logger.

    Good enough when alerts are read from the StockAlert table; plug a
    real backend through settings to push them somewhere.
    """

    def notify(self, event: LowStockEvent) -> None:
        logger.warning(
            "stock.low",
            extra={
                "presentation_id": event.presentation_id,
                "product": event.product_name,
                "quantity": event.quantity,
                "threshold": event.threshold,
                "kind": event.kind,
            },
        )


class MemoryNotifier:
    """
    Keeps events in memory.

    Meant for tests and local development:
        STOCKKEEPER = {"NOTIFIER": "stockkeeper.adapters.notifiers.MemoryNotifier"}
    """

    def __init__(self):
        self.events: list[LowStockEvent] = []

    def notify(self, event: LowStockEvent) -> None:
        self.events.append(event)


# Cached notifier instance
_lock = threading.Lock()
_notifier: LowStockNotifier | None = None


def get_notifier() -> LowStockNotifier:
    """
    Return the configured notifier.

    Raises:
        ImproperlyConfigured: If the dotted path cannot be imported or the
            class does not implement LowStockNotifier
    """
    global _notifier

    if _notifier is None:
        with _lock:
            if _notifier is None:  # double-checked
                notifier_path = stockkeeper_settings.NOTIFIER

                try:
                    notifier_class = import_string(notifier_path)
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import notifier '{notifier_path}': {e}"
                    ) from e

                instance = notifier_class()
                if not isinstance(instance, LowStockNotifier):
                    raise ImproperlyConfigured(
                        f"'{notifier_path}' does not implement LowStockNotifier"
                    )
                _notifier = instance
                logger.debug("Loaded notifier: %s", notifier_path)

    return _notifier


def reset_notifier() -> None:
    """Reset the cached notifier. Useful for testing."""
    global _notifier
    _notifier = None
