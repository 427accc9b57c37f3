"""
Stockkeeper Protocols.

Defines interfaces for external system integration.
"""

from stockkeeper.protocols.notifications import (
    LowStockEvent,
    LowStockNotifier,
)

__all__ = [
    "LowStockEvent",
    "LowStockNotifier",
]
