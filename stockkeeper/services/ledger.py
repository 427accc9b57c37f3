"""
Stock ledger — the only writer of StockMovement.

Every quantity change becomes one immutable movement; the on-hand quantity
cached on Presentation is the running sum of ACTIVE movements.

All writes run under transaction.atomic() with select_for_update() on the
Presentation row, so two writers on the same presentation never read the
same stock_before.
"""

import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from stockkeeper.exceptions import (
    IllegalStateTransitionError,
    InvalidQuantityError,
    NegativeStockError,
    ReferenceNotFoundError,
)
from stockkeeper.models.catalog import Presentation
from stockkeeper.models.enums import MovementStatus
from stockkeeper.models.movement import StockMovement
from stockkeeper.services.alerts import notify_if_low

logger = logging.getLogger('stockkeeper')


def _pk(obj):
    return getattr(obj, 'pk', obj)


def sync_quantity(presentation, quantity: int) -> None:
    """Reflect a new cached quantity on a caller-held instance."""
    if isinstance(presentation, Presentation):
        presentation._quantity = quantity


class StockLedger:
    """Append-only movement ledger and derived on-hand quantity."""

    @classmethod
    def lock(cls, presentation) -> Presentation:
        """
        Lock a presentation row for the rest of the current transaction.

        Must be called inside transaction.atomic().

        Raises:
            ReferenceNotFoundError: If the presentation does not exist
        """
        try:
            return Presentation.objects.select_for_update().get(pk=_pk(presentation))
        except Presentation.DoesNotExist:
            raise ReferenceNotFoundError(presentation_id=_pk(presentation))

    @classmethod
    def current_quantity(cls, presentation) -> int:
        """
        On-hand quantity: stock_after of the latest ACTIVE movement, 0 if none.

        Reads the committed cache, never the caller's instance.
        """
        try:
            return Presentation.objects.values_list('_quantity', flat=True).get(pk=_pk(presentation))
        except Presentation.DoesNotExist:
            raise ReferenceNotFoundError(presentation_id=_pk(presentation))

    @classmethod
    def append(cls, presentation, reason, quantity_in: int | None = None,
               quantity_out: int | None = None, allow_negative: bool = False,
               sale=None, supply_line=None, note: str = '', user=None,
               **metadata) -> StockMovement:
        """
        Append one ACTIVE movement.

        stock_before is read from the locked presentation, stock_after is
        stock_before + quantity_in - quantity_out.

        Raises:
            InvalidQuantityError: If both or neither direction is given, or a
                negative value is passed
            NegativeStockError: If stock_after < 0 and allow_negative is False

        Concurrency:
            - Runs under transaction.atomic()
            - Uses select_for_update() on Presentation
            - StockMovement.save() updates _quantity atomically
        """
        if (quantity_in is None) == (quantity_out is None):
            raise InvalidQuantityError(quantity_in=quantity_in, quantity_out=quantity_out)

        value = quantity_in if quantity_in is not None else quantity_out
        if isinstance(value, bool) or value < 0:
            raise InvalidQuantityError(requested=value)

        with transaction.atomic():
            locked = cls.lock(presentation)
            stock_before = locked._quantity
            stock_after = stock_before + (quantity_in or 0) - (quantity_out or 0)

            if stock_after < 0 and not allow_negative:
                raise NegativeStockError(
                    available=stock_before,
                    requested=quantity_out,
                )

            movement = StockMovement.objects.create(
                presentation=locked,
                product_id=locked.product_id,
                quantity_in=quantity_in,
                quantity_out=quantity_out,
                stock_before=stock_before,
                stock_after=stock_after,
                reason=reason,
                sale=sale,
                supply_line=supply_line,
                note=note,
                user=user,
                metadata=metadata,
            )
            logger.info(
                "stock.append",
                extra={
                    "presentation_id": locked.pk,
                    "reason": str(reason),
                    "delta": movement.delta,
                    "stock_before": stock_before,
                    "stock_after": stock_after,
                    "movement_id": movement.pk,
                },
            )

        sync_quantity(presentation, stock_after)
        return movement

    @classmethod
    def cancel_movement(cls, movement, allow_negative: bool = False) -> StockMovement:
        """
        Cancel the latest ACTIVE movement of a presentation.

        Transition: ACTIVE → CANCELLED. The cache goes back to the
        movement's stock_before. No compensating movement is created;
        to reverse an older movement, append a CORRECTION instead.

        Raises:
            ReferenceNotFoundError: If the movement doesn't exist
            IllegalStateTransitionError: If already cancelled or not the latest
            IllegalStateTransitionError: If linked to a sale or supply line
            NegativeStockError: If reverting would go below zero
        """
        try:
            presentation_id = StockMovement.objects.values_list(
                'presentation_id', flat=True
            ).get(pk=_pk(movement))
        except StockMovement.DoesNotExist:
            raise ReferenceNotFoundError(movement_id=_pk(movement))

        with transaction.atomic():
            # Presentation first, same lock order as append()
            locked = cls.lock(presentation_id)
            target = StockMovement.objects.select_for_update().get(pk=_pk(movement))

            if target.status != MovementStatus.ACTIVE:
                raise IllegalStateTransitionError(
                    current=target.status,
                    expected=MovementStatus.ACTIVE,
                )

            if target.sale_id or target.supply_line_id:
                # Sale and supply line own these; cancel through them
                raise IllegalStateTransitionError(
                    'LINKED_MOVEMENT',
                    movement_id=target.pk,
                    sale_id=target.sale_id,
                    supply_line_id=target.supply_line_id,
                )

            latest = StockMovement.objects.latest_active(locked)
            if latest.pk != target.pk:
                raise IllegalStateTransitionError(
                    'NOT_LATEST_MOVEMENT',
                    movement_id=target.pk,
                    latest_id=latest.pk,
                )

            new_quantity = locked._quantity - target.delta
            if new_quantity < 0 and not allow_negative:
                raise NegativeStockError(available=locked._quantity, requested=target.delta)

            target.status = MovementStatus.CANCELLED
            target.save(update_fields=['status', 'updated_at'])
            Presentation.objects.filter(pk=locked.pk).update(
                _quantity=F('_quantity') - target.delta,
                updated_at=timezone.now(),
            )
            locked._quantity = new_quantity
            notify_if_low(locked)
            logger.info(
                "stock.cancel",
                extra={
                    "presentation_id": locked.pk,
                    "movement_id": target.pk,
                    "delta": target.delta,
                },
            )

        if isinstance(movement, StockMovement):
            movement.status = MovementStatus.CANCELLED
        return target

    @classmethod
    def history(cls, presentation=None, status=None):
        """Movements, newest first."""
        qs = StockMovement.objects.select_related('presentation', 'product')
        if presentation is not None:
            qs = qs.filter(presentation_id=_pk(presentation))
        if status is not None:
            qs = qs.filter(status=status)
        return qs.order_by('-created_at', '-pk')

    @classmethod
    def recalculate(cls, presentation) -> int:
        """Rebuild the cached quantity from the ledger. See Presentation.recalculate()."""
        with transaction.atomic():
            locked = cls.lock(presentation)
            total = locked.recalculate()
        sync_quantity(presentation, total)
        return total
