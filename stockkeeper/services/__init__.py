"""
Stock services — modular organization of stock operations.

    from stockkeeper.services import (
        StockLedger, StockMovements, PriceSet, SupplyFulfillment,
        StockSales, Catalog, StockQueries,
    )
"""

from stockkeeper.services.catalog import Catalog
from stockkeeper.services.ledger import StockLedger
from stockkeeper.services.movements import StockMovements
from stockkeeper.services.prices import PriceSet
from stockkeeper.services.queries import StockQueries
from stockkeeper.services.sales import StockSales
from stockkeeper.services.supplies import SupplyFulfillment, SupplyLineInput

__all__ = [
    'Catalog',
    'StockLedger',
    'StockMovements',
    'PriceSet',
    'StockQueries',
    'StockSales',
    'SupplyFulfillment',
    'SupplyLineInput',
]
