"""
Supply fulfillment — purchase order and order-line lifecycle.

LINE STATUS (pure function of ordered/received):

    received == 0              → EN_ATTENTE   (NON_RECEPTIONNE once abandoned)
    0 < received < ordered     → PARTIELLEMENT_RECEPTIONNE
    received >= ordered        → RECEPTIONNE

ORDER STATUS (recomputed whenever a line changes):

    every line RECEPTIONNE           → RECEPTIONNE
    nothing received on any line     → NON_RECEPTIONNE
    otherwise                        → PARTIELLEMENT_RECEPTIONNE

COMMANDE_INITIEE is the creation state and is never re-entered.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from django.db import transaction

from stockkeeper.exceptions import (
    IllegalStateTransitionError,
    InvalidQuantityError,
    ReferenceNotFoundError,
)
from stockkeeper.models.catalog import Presentation
from stockkeeper.models.enums import SupplyLineStatus, SupplyStatus
from stockkeeper.models.supply import Supply, SupplyLine
from stockkeeper.services.ledger import _pk
from stockkeeper.services.movements import StockMovements
from stockkeeper.services.prices import PriceSet

logger = logging.getLogger('stockkeeper')


@dataclass(frozen=True)
class SupplyLineInput:
    """One line of a purchase order to create."""

    presentation: object  # Presentation or pk
    ordered_quantity: int
    purchase_price: Decimal | None = None
    selling_price: Decimal | None = None
    product: object = None  # Optional Product or pk, checked against the presentation

    @classmethod
    def coerce(cls, value) -> 'SupplyLineInput':
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return cls(**value)
        raise TypeError(f"Cannot build a supply line from {value!r}")


def _decimal_or_none(value, index: int, field: str, allow_zero: bool) -> Decimal | None:
    if value is None:
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidQuantityError('INVALID_PRICE', line=index, field=field, price=value)
    if not amount.is_finite() or amount < 0 or (amount == 0 and not allow_zero):
        raise InvalidQuantityError('INVALID_PRICE', line=index, field=field, price=value)
    return amount


class SupplyFulfillment:
    """Purchase orders: creation, receipt, abandonment, deletion."""

    # ══════════════════════════════════════════════════════════════
    # STATUS DERIVATION
    # ══════════════════════════════════════════════════════════════

    @staticmethod
    def line_status(ordered: int, received: int, abandoned: bool = False) -> str:
        """Status of a line from its quantities."""
        if received <= 0:
            return SupplyLineStatus.NON_RECEPTIONNE if abandoned else SupplyLineStatus.EN_ATTENTE
        if received < ordered:
            return SupplyLineStatus.PARTIELLEMENT_RECEPTIONNE
        return SupplyLineStatus.RECEPTIONNE

    @staticmethod
    def supply_status(lines: Iterable[SupplyLine]) -> str:
        """Aggregate status of an order from its lines."""
        lines = list(lines)
        if not lines:
            return SupplyStatus.COMMANDE_INITIEE
        if all(line.status == SupplyLineStatus.RECEPTIONNE for line in lines):
            return SupplyStatus.RECEPTIONNE
        if all(line.received_quantity == 0 for line in lines):
            return SupplyStatus.NON_RECEPTIONNE
        return SupplyStatus.PARTIELLEMENT_RECEPTIONNE

    # ══════════════════════════════════════════════════════════════
    # LIFECYCLE
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def create_supply(cls, lines, description: str = '') -> Supply:
        """
        Create a purchase order, all lines or nothing.

        Every line is validated before anything is written:
        ordered quantity > 0, purchase price >= 0, selling price > 0,
        presentation exists (and belongs to product when one is given).

        Raises:
            InvalidQuantityError: Bad quantity or price on a line
            ReferenceNotFoundError: Unknown presentation or product mismatch
        """
        inputs = [SupplyLineInput.coerce(line) for line in lines]
        validated = []

        for index, line in enumerate(inputs):
            ordered = line.ordered_quantity
            if isinstance(ordered, bool) or not isinstance(ordered, int) or ordered <= 0:
                raise InvalidQuantityError(line=index, requested=ordered)

            purchase_price = _decimal_or_none(line.purchase_price, index, 'purchase_price', allow_zero=True)
            selling_price = _decimal_or_none(line.selling_price, index, 'selling_price', allow_zero=False)

            presentation = Presentation.objects.filter(pk=_pk(line.presentation)).first()
            if presentation is None:
                raise ReferenceNotFoundError(line=index, presentation_id=_pk(line.presentation))
            if line.product is not None and _pk(line.product) != presentation.product_id:
                raise ReferenceNotFoundError(
                    'PRODUCT_MISMATCH',
                    line=index,
                    product_id=_pk(line.product),
                    presentation_id=presentation.pk,
                )

            validated.append((presentation, line.ordered_quantity, purchase_price, selling_price))

        with transaction.atomic():
            supply = Supply.objects.create(
                description=description,
                status=SupplyStatus.COMMANDE_INITIEE,
            )
            for presentation, ordered, purchase_price, selling_price in validated:
                SupplyLine.objects.create(
                    supply=supply,
                    product_id=presentation.product_id,
                    presentation=presentation,
                    ordered_quantity=ordered,
                    received_quantity=0,
                    purchase_price=purchase_price,
                    selling_price=selling_price,
                    status=SupplyLineStatus.EN_ATTENTE,
                )

        logger.info(
            "supply.create",
            extra={"supply_id": supply.pk, "lines": len(validated)},
        )
        return supply

    @classmethod
    def receive_line(cls, line, quantity: int, purchase_price=None, selling_price=None,
                     user=None) -> SupplyLine:
        """
        Receive quantity on a line, optionally with renegotiated prices.

        A new purchase price is copied to the presentation; a new selling
        price becomes the amount of the presentation's default price.

        Returns:
            The updated line
        """
        with transaction.atomic():
            locked_line = cls._lock_line(line)
            update_fields = ['updated_at']

            purchase = _decimal_or_none(purchase_price, 0, 'purchase_price', allow_zero=True)
            selling = _decimal_or_none(selling_price, 0, 'selling_price', allow_zero=False)

            if purchase is not None:
                locked_line.purchase_price = purchase
                update_fields.append('purchase_price')
                Presentation.objects.filter(pk=locked_line.presentation_id).update(purchase_price=purchase)
            if selling is not None:
                locked_line.selling_price = selling
                update_fields.append('selling_price')
                PriceSet.set_default_amount(locked_line.presentation_id, selling)

            if len(update_fields) > 1:
                locked_line.save(update_fields=update_fields)

            StockMovements.record_supply_receipt(locked_line, quantity, user=user)
            locked_line.refresh_from_db()

        if isinstance(line, SupplyLine):
            line.refresh_from_db()
        return locked_line

    @classmethod
    def mark_not_received(cls, line) -> SupplyLine:
        """
        Abandon a line that will never be delivered.

        Only allowed while nothing was received. Abandoned lines refuse
        further receipts.
        """
        with transaction.atomic():
            locked_line = cls._lock_line(line)

            if locked_line.received_quantity > 0:
                raise IllegalStateTransitionError(
                    'ALREADY_RECEIVED',
                    supply_line_id=locked_line.pk,
                    received=locked_line.received_quantity,
                )

            if not locked_line.is_abandoned:
                locked_line.status = SupplyLineStatus.NON_RECEPTIONNE
                cls.on_line_changed(locked_line)
                logger.info(
                    "supply.line_abandoned",
                    extra={"supply_line_id": locked_line.pk, "supply_id": locked_line.supply_id},
                )

        if isinstance(line, SupplyLine):
            line.status = locked_line.status
        return locked_line

    @classmethod
    def delete_supply(cls, supply) -> None:
        """
        Delete an order nothing was received on.

        Raises:
            IllegalStateTransitionError('SUPPLY_NOT_DELETABLE'): If the order
                left COMMANDE_INITIEE and still has lines
        """
        with transaction.atomic():
            try:
                locked = Supply.objects.select_for_update().get(pk=_pk(supply))
            except Supply.DoesNotExist:
                raise ReferenceNotFoundError(supply_id=_pk(supply))

            if not locked.is_deletable:
                raise IllegalStateTransitionError(
                    'SUPPLY_NOT_DELETABLE',
                    supply_id=locked.pk,
                    current=locked.status,
                )
            pk = locked.pk
            locked.delete()

        logger.info("supply.delete", extra={"supply_id": pk})

    @classmethod
    def refresh_status(cls, supply) -> Supply:
        """Recompute and persist the aggregate status of an order."""
        with transaction.atomic():
            try:
                locked = Supply.objects.select_for_update().get(pk=_pk(supply))
            except Supply.DoesNotExist:
                raise ReferenceNotFoundError(supply_id=_pk(supply))

            status = cls.supply_status(locked.lines.all())
            if status != locked.status:
                old = locked.status
                locked.status = status
                locked.save(update_fields=['status', 'updated_at'])
                logger.info(
                    "supply.status",
                    extra={"supply_id": locked.pk, "from": old, "to": status},
                )

        if isinstance(supply, Supply):
            supply.status = locked.status
        return locked

    @classmethod
    def on_line_changed(cls, line: SupplyLine) -> None:
        """
        Persist a line's quantity and derived status, then its order's status.

        Caller holds the line lock inside a transaction.
        """
        line.status = cls.line_status(
            line.ordered_quantity, line.received_quantity, abandoned=line.is_abandoned,
        )
        line.save(update_fields=['received_quantity', 'status', 'updated_at'])
        cls.refresh_status(line.supply_id)

    @classmethod
    def _lock_line(cls, line) -> SupplyLine:
        try:
            return SupplyLine.objects.select_for_update().get(pk=_pk(line))
        except SupplyLine.DoesNotExist:
            raise ReferenceNotFoundError(supply_line_id=_pk(line))
