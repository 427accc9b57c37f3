"""
Stockkeeper Models.

Core models for stock management:
- Product / Presentation: What is stocked (Presentation holds the quantity cache)
- StockMovement: Immutable ledger of changes
- SellingPrice: Price set with exactly one default per presentation
- Supply / SupplyLine: Purchase orders received over time
- Sale: Sales recorded against the ledger
- StockAlert: Low-stock notifications
"""

from stockkeeper.models.alert import StockAlert
from stockkeeper.models.catalog import Presentation, Product
from stockkeeper.models.enums import (
    AlertKind,
    MovementReason,
    MovementStatus,
    SaleStatus,
    SupplyLineStatus,
    SupplyStatus,
)
from stockkeeper.models.movement import StockMovement
from stockkeeper.models.price import SellingPrice
from stockkeeper.models.sale import Sale
from stockkeeper.models.supply import Supply, SupplyLine

__all__ = [
    'AlertKind',
    'MovementReason',
    'MovementStatus',
    'SaleStatus',
    'SupplyLineStatus',
    'SupplyStatus',
    'Product',
    'Presentation',
    'StockMovement',
    'SellingPrice',
    'Supply',
    'SupplyLine',
    'Sale',
    'StockAlert',
]
