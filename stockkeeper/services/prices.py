"""
Price set — selling prices of a presentation and its single default.

Demote and promote always run in the same transaction, under a lock on the
presentation row, so a committed price set never has zero or two defaults.
The partial unique constraint on SellingPrice backs this up at the database.
"""

import logging
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.utils import timezone

from stockkeeper.conf import stockkeeper_settings
from stockkeeper.exceptions import (
    InvalidQuantityError,
    InvariantViolationError,
    InventoryError,
    ReferenceNotFoundError,
)
from stockkeeper.models.price import SellingPrice
from stockkeeper.services.ledger import StockLedger, _pk

logger = logging.getLogger('stockkeeper')


def _validate_price(value) -> Decimal:
    """Coerce to Decimal and require > 0."""
    try:
        price = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidQuantityError('INVALID_PRICE', price=value)
    if not price.is_finite() or price <= 0:
        raise InvalidQuantityError('INVALID_PRICE', price=value)
    return price


class PriceSet:
    """Selling-price set operations."""

    @classmethod
    def list_prices(cls, presentation):
        """Prices of a presentation: default first, then by label."""
        return SellingPrice.objects.filter(
            presentation_id=_pk(presentation)
        ).order_by('-is_default', 'label', 'pk')

    @classmethod
    def default_price(cls, presentation) -> SellingPrice | None:
        return SellingPrice.objects.filter(
            presentation_id=_pk(presentation), is_default=True
        ).order_by('pk').first()

    @classmethod
    def add_price(cls, presentation, label: str, price, is_default: bool = False) -> SellingPrice:
        """
        Add a selling price.

        - is_default=True: every other price is demoted first
        - is_default=False and no default yet: forced to default
        - is_default=False otherwise: inserted as non-default

        Raises:
            InvalidQuantityError('INVALID_PRICE'): If price <= 0
            InventoryError('LABEL_REQUIRED'): If label is empty
        """
        if not label or not label.strip():
            raise InventoryError('LABEL_REQUIRED')
        amount = _validate_price(price)

        with transaction.atomic():
            locked = StockLedger.lock(presentation)
            prices = SellingPrice.objects.filter(presentation=locked)
            has_default = prices.filter(is_default=True).exists()

            if is_default:
                if has_default:
                    prices.filter(is_default=True).update(is_default=False, updated_at=timezone.now())
            elif not has_default:
                is_default = True

            selling_price = SellingPrice.objects.create(
                presentation=locked,
                label=label.strip(),
                price=amount,
                is_default=is_default,
            )
            cls.check_prices(locked)

        logger.info(
            "prices.add",
            extra={
                "presentation_id": selling_price.presentation_id,
                "price_id": selling_price.pk,
                "price": str(amount),
                "is_default": selling_price.is_default,
            },
        )
        return selling_price

    @classmethod
    def update_price(cls, selling_price, label: str | None = None, price=None,
                     is_default: bool | None = None) -> SellingPrice:
        """
        Edit label, amount or default flag.

        Setting is_default=True demotes the other prices. Clearing the flag
        on the current default hands it to the first other price by label;
        a sole price stays default.
        """
        if label is not None and not label.strip():
            raise InventoryError('LABEL_REQUIRED')
        amount = _validate_price(price) if price is not None else None

        with transaction.atomic():
            current, locked = cls._lock_price(selling_price)
            siblings = SellingPrice.objects.filter(presentation=locked).exclude(pk=current.pk)

            if label is not None:
                current.label = label.strip()
            if amount is not None:
                current.price = amount

            successor = None
            if is_default and not current.is_default:
                siblings.filter(is_default=True).update(is_default=False, updated_at=timezone.now())
                current.is_default = True
            elif is_default is False and current.is_default:
                successor = siblings.order_by('label', 'pk').first()
                if successor is not None:
                    current.is_default = False

            # Demote before promoting: the unique constraint is checked per statement
            current.save()
            if successor is not None:
                successor.is_default = True
                successor.save(update_fields=['is_default', 'updated_at'])

            cls.check_prices(locked)

        logger.info(
            "prices.update",
            extra={
                "presentation_id": current.presentation_id,
                "price_id": current.pk,
                "is_default": current.is_default,
            },
        )
        cls._sync(selling_price, current)
        return current

    @classmethod
    def set_default(cls, selling_price) -> SellingPrice:
        """Make this price the default of its presentation."""
        return cls.update_price(selling_price, is_default=True)

    @classmethod
    def delete_price(cls, selling_price) -> None:
        """
        Delete a price.

        When the default goes and others remain, the first remaining price
        by label becomes default.
        """
        with transaction.atomic():
            current, locked = cls._lock_price(selling_price)
            was_default = current.is_default
            current.delete()

            if was_default:
                successor = SellingPrice.objects.filter(
                    presentation=locked
                ).order_by('label', 'pk').first()
                if successor is not None:
                    successor.is_default = True
                    successor.save(update_fields=['is_default', 'updated_at'])

            cls.check_prices(locked)

        logger.info(
            "prices.delete",
            extra={"presentation_id": locked.pk, "was_default": was_default},
        )

    @classmethod
    def set_default_amount(cls, presentation, price) -> SellingPrice:
        """
        Change the amount of the default price.

        Adds a default price labelled DEFAULT_PRICE_LABEL when the set is empty.
        Used when a supply receipt brings a new selling price.
        """
        current = cls.default_price(presentation)
        if current is None:
            return cls.add_price(
                presentation, stockkeeper_settings.DEFAULT_PRICE_LABEL, price, is_default=True,
            )
        return cls.update_price(current, price=price)

    @classmethod
    def reconcile_prices(cls, presentation) -> SellingPrice | None:
        """
        Repair a price set written without the single-default rule.

        Several defaults: the first by creation order stays default.
        No default: the first by creation order is promoted.

        Returns:
            The default price, or None for an empty set
        """
        with transaction.atomic():
            locked = StockLedger.lock(presentation)
            prices = list(SellingPrice.objects.filter(presentation=locked).order_by('created_at', 'pk'))
            if not prices:
                return None

            defaults = [p for p in prices if p.is_default]
            if len(defaults) == 1:
                return defaults[0]

            if defaults:
                keep = defaults[0]
                SellingPrice.objects.filter(presentation=locked, is_default=True).exclude(
                    pk=keep.pk
                ).update(is_default=False, updated_at=timezone.now())
            else:
                keep = prices[0]
                keep.is_default = True
                keep.save(update_fields=['is_default', 'updated_at'])

            logger.warning(
                "prices.reconciled",
                extra={
                    "presentation_id": locked.pk,
                    "defaults_found": len(defaults),
                    "kept_price_id": keep.pk,
                },
            )
            keep.refresh_from_db()
            return keep

    @classmethod
    def check_prices(cls, presentation) -> None:
        """
        Raise InvariantViolationError unless a non-empty set has exactly one default.
        """
        prices = SellingPrice.objects.filter(presentation_id=_pk(presentation))
        total = prices.count()
        defaults = prices.filter(is_default=True).count()
        if total and defaults != 1:
            raise InvariantViolationError(
                presentation_id=_pk(presentation),
                prices=total,
                defaults=defaults,
            )

    # ══════════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _lock_price(cls, selling_price):
        """Lock the owning presentation, then read the price. Returns (price, presentation)."""
        try:
            presentation_id = SellingPrice.objects.values_list(
                'presentation_id', flat=True
            ).get(pk=_pk(selling_price))
        except SellingPrice.DoesNotExist:
            raise ReferenceNotFoundError(price_id=_pk(selling_price))

        locked = StockLedger.lock(presentation_id)
        try:
            current = SellingPrice.objects.get(pk=_pk(selling_price))
        except SellingPrice.DoesNotExist:
            raise ReferenceNotFoundError(price_id=_pk(selling_price))
        return current, locked

    @classmethod
    def _sync(cls, selling_price, current: SellingPrice) -> None:
        if isinstance(selling_price, SellingPrice) and selling_price is not current:
            selling_price.label = current.label
            selling_price.price = current.price
            selling_price.is_default = current.is_default
