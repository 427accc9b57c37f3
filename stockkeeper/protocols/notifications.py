"""
Low-stock Notification Protocol — Interface for alert delivery.

Stockkeeper defines this protocol; the surrounding application (mail,
SMS, dashboard push, ...) implements it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class LowStockEvent:
    """A mutation left a presentation at or below its threshold."""

    presentation_id: int
    product_id: int
    product_name: str
    quantity: int
    threshold: int
    kind: str  # "LOW_STOCK" or "OUT_OF_STOCK"
    alert_id: int | None = None

    @property
    def is_out_of_stock(self) -> bool:
        return self.kind == "OUT_OF_STOCK"


@runtime_checkable
class LowStockNotifier(Protocol):
    """
    Protocol for low-stock notification delivery.

    Called after the transaction that produced the event has committed.
    Implementations must not raise for delivery failures they can retry
    on their own.
    """

    def notify(self, event: LowStockEvent) -> None:
        """
        Deliver one low-stock event.

        Args:
            event: What fired, with quantity and threshold snapshots
        """
        ...
