"""
Stock movements — one policy wrapper per business reason.

The ledger records; this layer decides. Each method validates the request,
locks the presentation, writes exactly one movement and raises the low-stock
alert, all in one transaction.
"""

import logging

from django.db import transaction
from django.db.models import IntegerField, Sum
from django.db.models.functions import Coalesce

from stockkeeper.conf import stockkeeper_settings
from stockkeeper.exceptions import (
    IllegalStateTransitionError,
    InsufficientStockError,
    InvalidQuantityError,
    ReferenceNotFoundError,
)
from stockkeeper.models.enums import MovementReason
from stockkeeper.models.movement import StockMovement
from stockkeeper.models.supply import SupplyLine
from stockkeeper.services.alerts import notify_if_low
from stockkeeper.services.ledger import StockLedger, _pk, sync_quantity

logger = logging.getLogger('stockkeeper')


def _require_positive(quantity) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantityError(requested=quantity)


class StockMovements:
    """State-changing stock operations, one per movement reason."""

    @classmethod
    def record_initial_stock(cls, presentation, quantity: int, user=None) -> StockMovement:
        """
        Opening balance of a new presentation.

        Raises:
            InvalidQuantityError: If quantity < 0
            IllegalStateTransitionError('INITIAL_ALREADY_RECORDED'): If the
                presentation already has any movement
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise InvalidQuantityError(requested=quantity)

        with transaction.atomic():
            locked = StockLedger.lock(presentation)
            if locked.movements.exists():
                raise IllegalStateTransitionError(
                    'INITIAL_ALREADY_RECORDED', presentation_id=locked.pk,
                )
            movement = StockLedger.append(
                locked, MovementReason.INITIAL, quantity_in=quantity, user=user,
            )
            notify_if_low(locked)

        sync_quantity(presentation, movement.stock_after)
        return movement

    @classmethod
    def record_sale(cls, presentation, quantity: int, sale=None, user=None) -> StockMovement:
        """
        Stock exit for a sale.

        Raises:
            InvalidQuantityError: If quantity <= 0
            InsufficientStockError: If quantity > on-hand; nothing is written

        Concurrency:
            - Runs under transaction.atomic()
            - Uses select_for_update() on Presentation
            - Verifies quantity after lock
        """
        _require_positive(quantity)

        with transaction.atomic():
            locked = StockLedger.lock(presentation)
            if locked._quantity < quantity:
                raise InsufficientStockError(
                    available=locked._quantity,
                    requested=quantity,
                )
            movement = StockLedger.append(
                locked, MovementReason.SALE, quantity_out=quantity, sale=sale, user=user,
            )
            notify_if_low(locked)

        logger.info(
            "stock.sale",
            extra={
                "presentation_id": movement.presentation_id,
                "qty": quantity,
                "stock_after": movement.stock_after,
            },
        )
        sync_quantity(presentation, movement.stock_after)
        return movement

    @classmethod
    def record_return(cls, presentation, quantity: int, sale=None, user=None,
                      note: str = '') -> StockMovement:
        """
        Stock entry for a customer return.

        Unbounded unless CAP_RETURNS_TO_SALES is set, in which case the
        returned total may not exceed the sold total.
        """
        _require_positive(quantity)

        with transaction.atomic():
            locked = StockLedger.lock(presentation)

            if stockkeeper_settings.CAP_RETURNS_TO_SALES:
                returnable = cls._returnable(locked)
                if quantity > returnable:
                    raise InvalidQuantityError(
                        'RETURN_EXCEEDS_SALES',
                        available=returnable,
                        requested=quantity,
                    )

            movement = StockLedger.append(
                locked, MovementReason.RETURN, quantity_in=quantity,
                sale=sale, user=user, note=note,
            )
            notify_if_low(locked)

        sync_quantity(presentation, movement.stock_after)
        return movement

    @classmethod
    def record_adjustment(cls, presentation, delta: int, note: str = '', user=None) -> StockMovement:
        """
        Manual adjustment by a signed delta.

        Raises:
            InvalidQuantityError: If delta == 0
            InsufficientStockError: If the result would be negative and
                ALLOW_NEGATIVE_STOCK is off
        """
        return cls._signed(presentation, MovementReason.ADJUSTMENT, delta, note=note, user=user)

    @classmethod
    def adjust_to(cls, presentation, new_quantity: int, note: str = '', user=None) -> StockMovement | None:
        """
        Inventory count: adjust to an absolute quantity.

        Calculates delta automatically: new_quantity - current quantity.
        Returns None when nothing changes.
        """
        if isinstance(new_quantity, bool) or not isinstance(new_quantity, int) or new_quantity < 0:
            raise InvalidQuantityError(requested=new_quantity)

        with transaction.atomic():
            locked = StockLedger.lock(presentation)
            delta = new_quantity - locked._quantity
            if delta == 0:
                return None
            movement = cls._signed(locked, MovementReason.ADJUSTMENT, delta, note=note, user=user)

        sync_quantity(presentation, movement.stock_after)
        return movement

    @classmethod
    def record_correction(cls, presentation, delta: int, sale=None, note: str = '',
                          user=None) -> StockMovement:
        """Reversal of an earlier movement, recorded as a new CORRECTION movement."""
        return cls._signed(presentation, MovementReason.CORRECTION, delta, sale=sale, note=note, user=user)

    @classmethod
    def record_supply_receipt(cls, line, quantity: int, user=None) -> StockMovement:
        """
        Receive quantity on a supply line.

        received_quantity grows by quantity, a SUPPLY movement is appended
        and the line and order statuses are recomputed.

        Raises:
            InvalidQuantityError('RECEIPT_EXCEEDS_ORDER'): If more than the
                remaining quantity is received; nothing changes
            IllegalStateTransitionError: If the line was marked not received
            ReferenceNotFoundError: If the line doesn't exist

        Concurrency:
            - Locks the SupplyLine, then the Presentation (via the ledger)
        """
        from stockkeeper.services.supplies import SupplyFulfillment

        _require_positive(quantity)

        with transaction.atomic():
            try:
                locked_line = SupplyLine.objects.select_for_update().get(pk=_pk(line))
            except SupplyLine.DoesNotExist:
                raise ReferenceNotFoundError(supply_line_id=_pk(line))

            if locked_line.is_abandoned:
                raise IllegalStateTransitionError(
                    'LINE_ABANDONED',
                    supply_line_id=locked_line.pk,
                    current=locked_line.status,
                )

            if locked_line.received_quantity + quantity > locked_line.ordered_quantity:
                raise InvalidQuantityError(
                    'RECEIPT_EXCEEDS_ORDER',
                    available=locked_line.remaining,
                    requested=quantity,
                )

            movement = StockLedger.append(
                locked_line.presentation_id, MovementReason.SUPPLY,
                quantity_in=quantity, supply_line=locked_line, user=user,
            )

            locked_line.received_quantity += quantity
            SupplyFulfillment.on_line_changed(locked_line)

            presentation = StockLedger.lock(locked_line.presentation_id)
            notify_if_low(presentation)

        logger.info(
            "supply.receive",
            extra={
                "supply_line_id": locked_line.pk,
                "supply_id": locked_line.supply_id,
                "qty": quantity,
                "received": locked_line.received_quantity,
                "ordered": locked_line.ordered_quantity,
                "line_status": locked_line.status,
            },
        )
        if isinstance(line, SupplyLine):
            line.received_quantity = locked_line.received_quantity
            line.status = locked_line.status
        return movement

    # ══════════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _signed(cls, presentation, reason, delta: int, sale=None, note: str = '',
                user=None) -> StockMovement:
        """Append a movement from a signed delta, refusing negatives per settings."""
        if isinstance(delta, bool) or not isinstance(delta, int) or delta == 0:
            raise InvalidQuantityError(requested=delta)

        allow_negative = stockkeeper_settings.ALLOW_NEGATIVE_STOCK

        with transaction.atomic():
            locked = StockLedger.lock(presentation)
            if locked._quantity + delta < 0 and not allow_negative:
                raise InsufficientStockError(
                    available=locked._quantity,
                    requested=-delta,
                )

            if delta > 0:
                movement = StockLedger.append(
                    locked, reason, quantity_in=delta, sale=sale, note=note, user=user,
                )
            else:
                movement = StockLedger.append(
                    locked, reason, quantity_out=-delta, allow_negative=allow_negative,
                    sale=sale, note=note, user=user,
                )
            notify_if_low(locked)

        logger.info(
            "stock.adjust",
            extra={
                "presentation_id": movement.presentation_id,
                "reason": str(reason),
                "delta": delta,
                "note": note,
            },
        )
        sync_quantity(presentation, movement.stock_after)
        return movement

    @classmethod
    def _returnable(cls, presentation) -> int:
        """Sold minus already returned, over ACTIVE movements."""
        active = StockMovement.objects.active().for_presentation(presentation)
        sold = active.filter(reason=MovementReason.SALE).aggregate(
            t=Coalesce(Sum('quantity_out'), 0, output_field=IntegerField())
        )['t']
        returned = active.filter(reason=MovementReason.RETURN).aggregate(
            t=Coalesce(Sum('quantity_in'), 0, output_field=IntegerField())
        )['t']
        return sold - returned
