"""
Catalog boundary — creating and deleting presentations.

A presentation is born with its INITIAL movement and its price set in a
single transaction, and can only be deleted while that INITIAL movement is
the only trace it left in the ledger.
"""

import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal, InvalidOperation

from django.db import transaction

from stockkeeper.exceptions import IllegalStateTransitionError, InvalidQuantityError
from stockkeeper.models.catalog import Presentation
from stockkeeper.models.enums import MovementReason
from stockkeeper.models.movement import StockMovement
from stockkeeper.services.ledger import StockLedger
from stockkeeper.services.movements import StockMovements
from stockkeeper.services.prices import PriceSet

logger = logging.getLogger('stockkeeper')


class Catalog:
    """Presentation lifecycle."""

    @classmethod
    def create_presentation(cls, product, unit: str, purchase_price=Decimal('0'),
                            size: str = '', low_stock_threshold: int = 0, sku: str = '',
                            initial_stock: int = 0, prices: Iterable = (),
                            user=None) -> Presentation:
        """
        Create a presentation with its opening stock and selling prices.

        Args:
            prices: (label, price, is_default) tuples or mappings with
                those keys; the first one becomes default when none asks to

        Raises:
            InvalidQuantityError: Negative purchase price or initial stock,
                or a non-positive selling price
            django.core.exceptions.ValidationError: Bad field format (sku, ...)
        """
        try:
            purchase = Decimal(str(purchase_price))
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidQuantityError('INVALID_PRICE', price=purchase_price)
        if purchase < 0:
            raise InvalidQuantityError('INVALID_PRICE', price=purchase_price)

        with transaction.atomic():
            presentation = Presentation(
                product=product,
                unit=unit,
                size=size,
                purchase_price=purchase,
                low_stock_threshold=low_stock_threshold,
                sku=sku,
            )
            presentation.full_clean()
            presentation.save()

            StockMovements.record_initial_stock(presentation, initial_stock, user=user)

            for entry in prices:
                if isinstance(entry, Mapping):
                    PriceSet.add_price(presentation, **entry)
                else:
                    PriceSet.add_price(presentation, *entry)

        logger.info(
            "catalog.create",
            extra={
                "presentation_id": presentation.pk,
                "product_id": presentation.product_id,
                "initial_stock": initial_stock,
            },
        )
        return presentation

    @classmethod
    def delete_presentation(cls, presentation) -> None:
        """
        Delete a presentation that only has its INITIAL movement.

        Raises:
            IllegalStateTransitionError('PRESENTATION_IN_USE'): If any
                non-INITIAL movement, supply line or sale references it
        """
        with transaction.atomic():
            locked = StockLedger.lock(presentation)

            if StockMovement.objects.filter(presentation=locked).exclude(
                reason=MovementReason.INITIAL
            ).exists():
                raise IllegalStateTransitionError(
                    'PRESENTATION_IN_USE', presentation_id=locked.pk, blocker='movements',
                )
            if locked.supply_lines.exists():
                raise IllegalStateTransitionError(
                    'PRESENTATION_IN_USE', presentation_id=locked.pk, blocker='supply_lines',
                )
            if locked.sales.exists():
                raise IllegalStateTransitionError(
                    'PRESENTATION_IN_USE', presentation_id=locked.pk, blocker='sales',
                )

            pk = locked.pk
            # QuerySet.delete() bypasses StockMovement.delete(); only INITIAL rows remain here
            StockMovement.objects.filter(presentation=locked).delete()
            locked.delete()

        logger.info("catalog.delete", extra={"presentation_id": pk})
