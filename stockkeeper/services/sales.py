"""
Stock sales — sales recorded against the ledger, and their cancellation.
"""

import logging
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.utils import timezone

from stockkeeper.exceptions import (
    IllegalStateTransitionError,
    InvalidQuantityError,
    InventoryError,
    ReferenceNotFoundError,
)
from stockkeeper.models.enums import SaleStatus
from stockkeeper.models.sale import Sale
from stockkeeper.services.ledger import StockLedger, _pk, sync_quantity
from stockkeeper.services.movements import StockMovements
from stockkeeper.services.prices import PriceSet

logger = logging.getLogger('stockkeeper')


class StockSales:
    """Sales lifecycle: ACTIVE → CANCELLED."""

    @classmethod
    def create_sale(cls, presentation, quantity: int, unit_price=None, client_name: str = '',
                    description: str = '', sale_date=None, user=None) -> Sale:
        """
        Record a sale and take its quantity out of stock.

        unit_price defaults to the presentation's default selling price.

        Raises:
            InsufficientStockError: Not enough stock; the sale is not created
            InventoryError('PRICE_REQUIRED'): No unit price and no default price
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidQuantityError(requested=quantity)

        with transaction.atomic():
            locked = StockLedger.lock(presentation)

            if unit_price is None:
                default = PriceSet.default_price(locked)
                if default is None:
                    raise InventoryError('PRICE_REQUIRED', presentation_id=locked.pk)
                price = default.price
            else:
                try:
                    price = Decimal(str(unit_price))
                except (InvalidOperation, TypeError, ValueError):
                    raise InvalidQuantityError('INVALID_PRICE', price=unit_price)
                if price < 0:
                    raise InvalidQuantityError('INVALID_PRICE', price=unit_price)

            sale = Sale.objects.create(
                presentation=locked,
                product_id=locked.product_id,
                quantity=quantity,
                unit_price=price,
                total_amount=price * quantity,
                sale_date=sale_date or timezone.now(),
                client_name=client_name,
                description=description,
                status=SaleStatus.ACTIVE,
                created_by=user,
            )
            movement = StockMovements.record_sale(locked, quantity, sale=sale, user=user)

        logger.info(
            "sale.create",
            extra={"sale_id": sale.pk, "presentation_id": locked.pk, "qty": quantity},
        )
        sync_quantity(presentation, movement.stock_after)
        return sale

    @classmethod
    def cancel_sale(cls, sale, user=None) -> Sale:
        """
        Cancel a sale and put its quantity back with a CORRECTION movement.

        Raises:
            ReferenceNotFoundError: If the sale doesn't exist
            IllegalStateTransitionError: If already cancelled
        """
        with transaction.atomic():
            try:
                locked = Sale.objects.select_for_update().get(pk=_pk(sale))
            except Sale.DoesNotExist:
                raise ReferenceNotFoundError(sale_id=_pk(sale))

            if locked.status != SaleStatus.ACTIVE:
                raise IllegalStateTransitionError(
                    current=locked.status,
                    expected=SaleStatus.ACTIVE,
                )

            locked.status = SaleStatus.CANCELLED
            locked.save(update_fields=['status', 'updated_at'])
            StockMovements.record_correction(
                locked.presentation_id,
                locked.quantity,
                sale=locked,
                note=f"Annulation vente #{locked.pk}",
                user=user,
            )

        logger.info("sale.cancel", extra={"sale_id": locked.pk, "qty": locked.quantity})
        if isinstance(sale, Sale):
            sale.status = locked.status
        return locked
