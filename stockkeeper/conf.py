"""
Stockkeeper configuration.

Usage in settings.py:
    STOCKKEEPER = {
        "ALLOW_NEGATIVE_STOCK": False,
        "CAP_RETURNS_TO_SALES": False,
        "LOW_STOCK_ALERTS": True,
        "NOTIFIER": "stockkeeper.adapters.notifiers.LoggingNotifier",
        "DEFAULT_PRICE_LABEL": "Standard",
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class StockkeeperSettings:
    """Stockkeeper configuration settings."""

    # Let adjustments drive on-hand quantity below zero
    ALLOW_NEGATIVE_STOCK: bool = False

    # Refuse returns beyond the quantity sold so far
    CAP_RETURNS_TO_SALES: bool = False

    # Store a StockAlert and notify when quantity <= low_stock_threshold
    LOW_STOCK_ALERTS: bool = True

    # Low-stock notification backend (dotted path)
    NOTIFIER: str = "stockkeeper.adapters.notifiers.LoggingNotifier"

    # Label used when a supply receipt creates the first selling price
    DEFAULT_PRICE_LABEL: str = "Standard"


def get_stockkeeper_settings() -> StockkeeperSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "STOCKKEEPER", {})
    return StockkeeperSettings(**{
        k: v for k, v in user_settings.items()
        if k in StockkeeperSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_stockkeeper_settings(), name)


stockkeeper_settings = _LazySettings()
