"""
Django Stockkeeper — Stock, prix de vente et approvisionnements.

Usage:
    from stockkeeper import stock, InventoryError

    stock.record_initial_stock(presentation, 100)
    stock.record_sale(presentation, 30)
    stock.current_quantity(presentation)  # 70
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'stock':
        from stockkeeper.service import Stock
        return Stock
    elif name == 'InventoryError':
        from stockkeeper.exceptions import InventoryError
        return InventoryError
    elif name == 'Product':
        from stockkeeper.models.catalog import Product
        return Product
    elif name == 'Presentation':
        from stockkeeper.models.catalog import Presentation
        return Presentation
    elif name == 'StockMovement':
        from stockkeeper.models.movement import StockMovement
        return StockMovement
    elif name == 'SellingPrice':
        from stockkeeper.models.price import SellingPrice
        return SellingPrice
    elif name == 'Supply':
        from stockkeeper.models.supply import Supply
        return Supply
    elif name == 'SupplyLine':
        from stockkeeper.models.supply import SupplyLine
        return SupplyLine
    elif name == 'Sale':
        from stockkeeper.models.sale import Sale
        return Sale
    elif name == 'StockAlert':
        from stockkeeper.models.alert import StockAlert
        return StockAlert
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'stock',
    'InventoryError',
    'Product',
    'Presentation',
    'StockMovement',
    'SellingPrice',
    'Supply',
    'SupplyLine',
    'Sale',
    'StockAlert',
]

__version__ = '0.1.0'
