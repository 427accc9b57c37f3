"""
Exceptions for Stockkeeper.

Every error is an InventoryError with a structured code for programmatic handling.
Subclasses narrow the kind of failure so callers can catch what they care about.
"""

from decimal import Decimal
from typing import Any


class InventoryError(Exception):
    """
    Structured exception for inventory operations.

    Usage:
        try:
            stock.record_sale(presentation, 10)
        except InventoryError as e:
            if e.code == 'INSUFFICIENT_STOCK':
                print(f"Seulement {e.available} en stock")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    default_code = 'INVENTORY_ERROR'

    _default_messages = {
        'INVENTORY_ERROR': 'Erreur de stock',
        'NEGATIVE_STOCK': 'Le stock ne peut pas être négatif',
        'INSUFFICIENT_STOCK': 'Stock insuffisant',
        'INVALID_QUANTITY': 'Quantité invalide',
        'INVALID_PRICE': 'Prix invalide',
        'RECEIPT_EXCEEDS_ORDER': 'La quantité reçue dépasse la quantité commandée',
        'RETURN_EXCEEDS_SALES': 'Le retour dépasse les quantités vendues',
        'DEFAULT_PRICE_INVARIANT': 'Un seul prix par défaut est requis',
        'NOT_FOUND': 'Référence introuvable',
        'PRODUCT_MISMATCH': 'La présentation n\'appartient pas à ce produit',
        'ILLEGAL_TRANSITION': 'Transition d\'état interdite',
        'NOT_LATEST_MOVEMENT': 'Seul le dernier mouvement actif peut être annulé',
        'LINKED_MOVEMENT': 'Mouvement lié à une vente ou une réception, annulez la source',
        'INITIAL_ALREADY_RECORDED': 'Le stock initial a déjà été enregistré',
        'LINE_ABANDONED': 'Ligne marquée non réceptionnée',
        'ALREADY_RECEIVED': 'Des quantités ont déjà été reçues sur cette ligne',
        'SUPPLY_NOT_DELETABLE': 'Approvisionnement déjà (partiellement) traité',
        'PRESENTATION_IN_USE': 'Présentation référencée par des mouvements',
        'LABEL_REQUIRED': 'Le libellé est obligatoire',
        'PRICE_REQUIRED': 'Aucun prix de vente par défaut',
    }

    def __init__(self, code: str | None = None, message: str | None = None, **data):
        self.code = code or self.default_code
        self.message = message or self._default_messages.get(self.code, self.code)
        self.data = data
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.data:
            return f"[{self.code}] {self.message} {self.data}"
        return f"[{self.code}] {self.message}"

    @property
    def available(self) -> int:
        """Shortcut for data['available']."""
        return self.data.get('available', 0)

    @property
    def requested(self) -> int:
        """Shortcut for data['requested']."""
        return self.data.get('requested', 0)

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: str(v) if isinstance(v, Decimal) else v
                for k, v in self.data.items()
            }
        }


class NegativeStockError(InventoryError):
    """A mutation would drive on-hand quantity below zero."""

    default_code = 'NEGATIVE_STOCK'


class InsufficientStockError(NegativeStockError):
    """Sale or negative adjustment larger than what is on hand."""

    default_code = 'INSUFFICIENT_STOCK'


class InvalidQuantityError(InventoryError):
    """Non-positive quantity or price, or a receipt beyond the ordered quantity."""

    default_code = 'INVALID_QUANTITY'


class InvariantViolationError(InventoryError):
    """A price set ended up with zero or several default prices."""

    default_code = 'DEFAULT_PRICE_INVARIANT'


class ReferenceNotFoundError(InventoryError):
    """Presentation, supply line, supply or sale not found."""

    default_code = 'NOT_FOUND'


class IllegalStateTransitionError(InventoryError):
    """Operation not allowed in the current state of the record."""

    default_code = 'ILLEGAL_TRANSITION'
