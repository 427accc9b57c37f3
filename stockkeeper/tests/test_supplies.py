"""
Tests for purchase orders: creation, receipts, statuses, abandonment, deletion.
"""

from decimal import Decimal

import pytest

from stockkeeper import stock
from stockkeeper.exceptions import (
    IllegalStateTransitionError,
    InvalidQuantityError,
    ReferenceNotFoundError,
)
from stockkeeper.models import (
    MovementReason,
    Presentation,
    Product,
    SellingPrice,
    Supply,
    SupplyLine,
    SupplyLineStatus,
    SupplyStatus,
)
from stockkeeper.services import SupplyFulfillment, SupplyLineInput


pytestmark = pytest.mark.django_db


@pytest.fixture
def line(supply):
    """First line of the supply fixture (50 ordered)."""
    return supply.lines.get(ordered_quantity=50)


@pytest.fixture
def other_line(supply):
    """Second line of the supply fixture (10 ordered)."""
    return supply.lines.get(ordered_quantity=10)


class TestLineStatus:
    """SupplyFulfillment.line_status() is a pure function of the quantities."""

    @pytest.mark.parametrize('ordered', [1, 2, 7, 50])
    def test_all_valid_pairs(self, ordered):
        """Every 0 <= received <= ordered maps to the documented status."""
        for received in range(ordered + 1):
            status = SupplyFulfillment.line_status(ordered, received)
            if received == 0:
                assert status == SupplyLineStatus.EN_ATTENTE
            elif received < ordered:
                assert status == SupplyLineStatus.PARTIELLEMENT_RECEPTIONNE
            else:
                assert status == SupplyLineStatus.RECEPTIONNE

    def test_abandoned(self):
        """An abandoned line with nothing received is NON_RECEPTIONNE."""
        assert SupplyFulfillment.line_status(5, 0, abandoned=True) == SupplyLineStatus.NON_RECEPTIONNE


class TestSupplyStatus:
    """SupplyFulfillment.supply_status() aggregates line statuses."""

    def _line(self, ordered, received, status=None):
        return SupplyLine(
            ordered_quantity=ordered,
            received_quantity=received,
            status=status or SupplyFulfillment.line_status(ordered, received),
        )

    def test_no_lines(self):
        assert SupplyFulfillment.supply_status([]) == SupplyStatus.COMMANDE_INITIEE

    def test_all_received(self):
        lines = [self._line(5, 5), self._line(3, 3)]
        assert SupplyFulfillment.supply_status(lines) == SupplyStatus.RECEPTIONNE

    def test_nothing_received(self):
        lines = [self._line(5, 0), self._line(3, 0, SupplyLineStatus.NON_RECEPTIONNE)]
        assert SupplyFulfillment.supply_status(lines) == SupplyStatus.NON_RECEPTIONNE

    def test_mixed(self):
        lines = [self._line(5, 5), self._line(3, 1)]
        assert SupplyFulfillment.supply_status(lines) == SupplyStatus.PARTIELLEMENT_RECEPTIONNE


class TestCreateSupply:
    """Tests for stock.create_supply()."""

    def test_creates_order_and_lines(self, supply, presentation):
        """Order starts COMMANDE_INITIEE with EN_ATTENTE lines."""
        assert supply.status == SupplyStatus.COMMANDE_INITIEE
        assert supply.description == 'Commande fournisseur'
        assert supply.lines.count() == 2

        line = supply.lines.get(presentation=presentation)
        assert line.product_id == presentation.product_id
        assert line.received_quantity == 0
        assert line.status == SupplyLineStatus.EN_ATTENTE
        assert line.purchase_price == Decimal('1400.00')
        assert line.selling_price == Decimal('2000.00')

    def test_accepts_dataclass(self, presentation, product):
        """Lines may be SupplyLineInput instances."""
        supply = stock.create_supply([
            SupplyLineInput(presentation=presentation.pk, ordered_quantity=3, product=product),
        ])

        assert supply.lines.get().ordered_quantity == 3

    def test_no_stock_movement(self, supply, presentation):
        """Ordering does not touch stock."""
        assert presentation.movements.count() == 0

    @pytest.mark.parametrize('bad', [
        {'ordered_quantity': 0},
        {'ordered_quantity': -4},
        {'ordered_quantity': True},
        {'ordered_quantity': 5, 'purchase_price': Decimal('-1')},
        {'ordered_quantity': 5, 'selling_price': Decimal('0')},
    ])
    def test_all_or_nothing(self, presentation, other_presentation, bad):
        """One invalid line and no order is written."""
        with pytest.raises(InvalidQuantityError):
            stock.create_supply([
                {'presentation': presentation, 'ordered_quantity': 5},
                {'presentation': other_presentation, **bad},
            ])

        assert not Supply.objects.exists()
        assert not SupplyLine.objects.exists()

    def test_unknown_presentation(self, presentation):
        """A missing presentation is refused before writing."""
        with pytest.raises(ReferenceNotFoundError):
            stock.create_supply([
                {'presentation': presentation, 'ordered_quantity': 5},
                {'presentation': 999999, 'ordered_quantity': 5},
            ])

        assert not Supply.objects.exists()

    def test_product_mismatch(self, presentation):
        """The presentation must belong to the given product."""
        stranger = Product.objects.create(name='Ibuprofène')

        with pytest.raises(ReferenceNotFoundError) as exc:
            stock.create_supply([
                {'presentation': presentation, 'ordered_quantity': 5, 'product': stranger},
            ])

        assert exc.value.code == 'PRODUCT_MISMATCH'

    def test_bad_line_type(self, presentation):
        """Lines must be mappings or SupplyLineInput."""
        with pytest.raises(TypeError):
            stock.create_supply([(presentation, 5)])


class TestScenarioC:
    """Receiving 20 then 30 of 50, then one too many."""

    def test_receipt_sequence(self, line, presentation):
        """Partial, then complete, then refused."""
        stock.record_supply_receipt(line, 20)
        line.refresh_from_db()
        assert line.received_quantity == 20
        assert line.status == SupplyLineStatus.PARTIELLEMENT_RECEPTIONNE

        stock.record_supply_receipt(line, 30)
        line.refresh_from_db()
        assert line.received_quantity == 50
        assert line.status == SupplyLineStatus.RECEPTIONNE

        with pytest.raises(InvalidQuantityError) as exc:
            stock.record_supply_receipt(line, 1)

        assert exc.value.code == 'RECEIPT_EXCEEDS_ORDER'
        assert exc.value.available == 0
        line.refresh_from_db()
        assert line.received_quantity == 50
        assert line.status == SupplyLineStatus.RECEPTIONNE
        assert stock.current_quantity(presentation) == 50


class TestScenarioD:
    """One line fully received, the other untouched."""

    def test_partial_order(self, supply, other_line):
        """The order is PARTIELLEMENT_RECEPTIONNE."""
        stock.record_supply_receipt(other_line, 10)

        supply.refresh_from_db()
        assert other_line.status == SupplyLineStatus.RECEPTIONNE
        assert supply.lines.get(ordered_quantity=50).status == SupplyLineStatus.EN_ATTENTE
        assert supply.status == SupplyStatus.PARTIELLEMENT_RECEPTIONNE

    def test_complete_order(self, supply, line, other_line):
        """Both lines received: the order is RECEPTIONNE."""
        stock.record_supply_receipt(line, 50)
        stock.record_supply_receipt(other_line, 10)

        supply.refresh_from_db()
        assert supply.status == SupplyStatus.RECEPTIONNE
        assert supply not in stock.pending_supplies()


class TestRecordSupplyReceipt:
    """Tests for stock.record_supply_receipt()."""

    def test_appends_supply_movement(self, line, presentation, user):
        """A receipt is a SUPPLY entry linked to the line."""
        movement = stock.record_supply_receipt(line, 20, user=user)

        assert movement.reason == MovementReason.SUPPLY
        assert movement.quantity_in == 20
        assert movement.supply_line_id == line.pk
        assert movement.user == user
        assert stock.current_quantity(presentation) == 20

    def test_updates_caller_line(self, line):
        """The caller's line reflects the new received quantity."""
        stock.record_supply_receipt(line, 5)

        assert line.received_quantity == 5
        assert line.status == SupplyLineStatus.PARTIELLEMENT_RECEPTIONNE

    def test_monotonic(self, line):
        """received_quantity never decreases, failed calls leave it as is."""
        seen = [0]
        for quantity in [10, 0, 45, 15, -2, 25, 1]:
            try:
                stock.record_supply_receipt(line, quantity)
            except InvalidQuantityError:
                pass
            line.refresh_from_db()
            assert line.received_quantity >= seen[-1]
            seen.append(line.received_quantity)

        assert seen[-1] == 50

    def test_receipt_movement_not_cancellable(self, line, presentation):
        """Received quantity and stock stay in step; the line can still be completed."""
        movement = stock.record_supply_receipt(line, 20)

        with pytest.raises(IllegalStateTransitionError):
            stock.cancel_movement(movement)
        stock.record_supply_receipt(line, 30)

        line.refresh_from_db()
        assert line.received_quantity == 50
        assert line.status == SupplyLineStatus.RECEPTIONNE
        assert stock.current_quantity(presentation) == 50

    def test_unknown_line(self, db):
        """Unknown line raises ReferenceNotFoundError."""
        with pytest.raises(ReferenceNotFoundError):
            stock.record_supply_receipt(999999, 1)


class TestReceiveLine:
    """Tests for stock.receive_line() with renegotiated prices."""

    def test_updates_purchase_price(self, line, presentation):
        """A new purchase price is copied to the presentation."""
        updated = stock.receive_line(line, 10, purchase_price='1450')

        presentation.refresh_from_db()
        assert updated.purchase_price == Decimal('1450')
        assert presentation.purchase_price == Decimal('1450')
        assert updated.received_quantity == 10

    def test_selling_price_creates_default(self, line, presentation):
        """With no price set, the selling price becomes the default."""
        stock.receive_line(line, 10, selling_price='2100')

        default = stock.default_price(presentation)
        assert default.price == Decimal('2100')
        assert default.label == 'Standard'

    def test_selling_price_updates_default(self, line, presentation):
        """An existing default gets the new amount."""
        stock.add_price(presentation, 'Détail', 2000)
        stock.add_price(presentation, 'Gros', 1800)

        stock.receive_line(line, 10, selling_price='2200')

        assert stock.default_price(presentation).price == Decimal('2200')
        assert SellingPrice.objects.filter(presentation=presentation).count() == 2

    def test_failed_receipt_keeps_prices(self, line, presentation):
        """Prices are not changed when the receipt is refused."""
        with pytest.raises(InvalidQuantityError):
            stock.receive_line(line, 60, purchase_price='9999', selling_price='9999')

        presentation.refresh_from_db()
        line.refresh_from_db()
        assert presentation.purchase_price == Decimal('1500.00')
        assert line.purchase_price == Decimal('1400.00')
        assert stock.default_price(presentation) is None


class TestMarkNotReceived:
    """Tests for stock.mark_not_received()."""

    def test_abandon_untouched_line(self, supply, line, other_line):
        """Abandoning the only untouched lines makes the order NON_RECEPTIONNE."""
        stock.mark_not_received(line)
        stock.mark_not_received(other_line)

        supply.refresh_from_db()
        assert line.status == SupplyLineStatus.NON_RECEPTIONNE
        assert supply.status == SupplyStatus.NON_RECEPTIONNE

    def test_abandon_one_of_two(self, supply, line, other_line):
        """An abandoned line next to a received one: partially received."""
        stock.record_supply_receipt(other_line, 10)
        stock.mark_not_received(line)

        supply.refresh_from_db()
        assert supply.status == SupplyStatus.PARTIELLEMENT_RECEPTIONNE

    def test_refused_after_receipt(self, line):
        """A line that received goods cannot be abandoned."""
        stock.record_supply_receipt(line, 1)

        with pytest.raises(IllegalStateTransitionError) as exc:
            stock.mark_not_received(line)

        assert exc.value.code == 'ALREADY_RECEIVED'

    def test_abandoned_refuses_receipt(self, line):
        """Receipts on an abandoned line are refused."""
        stock.mark_not_received(line)

        with pytest.raises(IllegalStateTransitionError) as exc:
            stock.record_supply_receipt(line, 1)

        assert exc.value.code == 'LINE_ABANDONED'


class TestDeleteSupply:
    """Tests for stock.delete_supply()."""

    def test_delete_fresh_order(self, supply):
        """A COMMANDE_INITIEE order is deleted with its lines."""
        stock.delete_supply(supply)

        assert not Supply.objects.exists()
        assert not SupplyLine.objects.exists()

    def test_delete_processed_order_refused(self, supply, line):
        """An order that left COMMANDE_INITIEE cannot be deleted."""
        stock.record_supply_receipt(line, 5)

        with pytest.raises(IllegalStateTransitionError) as exc:
            stock.delete_supply(supply)

        assert exc.value.code == 'SUPPLY_NOT_DELETABLE'
        assert Supply.objects.filter(pk=supply.pk).exists()

    def test_delete_unknown(self, db):
        with pytest.raises(ReferenceNotFoundError):
            stock.delete_supply(999999)

    def test_pending_supplies(self, supply, line):
        """Fresh and partially received orders are pending."""
        assert supply in stock.pending_supplies()

        stock.record_supply_receipt(line, 5)

        assert supply in stock.pending_supplies()
