"""
Stockkeeper Adapters.

Implementations of protocols for external systems.
"""

from stockkeeper.adapters.notifiers import (
    LoggingNotifier,
    MemoryNotifier,
    get_notifier,
    reset_notifier,
)

__all__ = [
    "LoggingNotifier",
    "MemoryNotifier",
    "get_notifier",
    "reset_notifier",
]
