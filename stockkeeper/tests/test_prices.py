"""
Tests for the selling-price set and its single default.
"""

from decimal import Decimal
from itertools import permutations

import pytest
from django.db import IntegrityError, connection, transaction

from stockkeeper import stock, InventoryError
from stockkeeper.exceptions import (
    InvalidQuantityError,
    InvariantViolationError,
    ReferenceNotFoundError,
)
from stockkeeper.models import SellingPrice


pytestmark = pytest.mark.django_db


def _defaults(presentation):
    return SellingPrice.objects.filter(presentation=presentation, is_default=True).count()


def _assert_single_default(presentation):
    if SellingPrice.objects.filter(presentation=presentation).exists():
        assert _defaults(presentation) == 1


class TestScenarioB:
    """First price forced to default, then a new default takes over."""

    def test_add_sequence(self, presentation):
        """Retail forced default, then Wholesale demotes it."""
        retail = stock.add_price(presentation, 'Retail', 1000, False)
        assert retail.is_default is True

        wholesale = stock.add_price(presentation, 'Wholesale', 800, True)
        retail.refresh_from_db()

        assert retail.is_default is False
        assert wholesale.is_default is True
        assert stock.default_price(presentation) == wholesale


class TestAddPrice:
    """Tests for stock.add_price()."""

    def test_non_default_when_default_exists(self, presentation):
        """A second price without the flag stays non-default."""
        stock.add_price(presentation, 'Détail', 1000)
        gros = stock.add_price(presentation, 'Gros', 800)

        assert gros.is_default is False
        assert _defaults(presentation) == 1

    def test_amount_is_decimal(self, presentation):
        """Amounts are stored as Decimal."""
        price = stock.add_price(presentation, 'Détail', '1250.50')

        assert price.price == Decimal('1250.50')

    @pytest.mark.parametrize('amount', [0, -1, 'abc', None])
    def test_invalid_price(self, presentation, amount):
        """Price must be a positive number."""
        with pytest.raises(InvalidQuantityError) as exc:
            stock.add_price(presentation, 'Détail', amount)

        assert exc.value.code == 'INVALID_PRICE'
        assert not SellingPrice.objects.filter(presentation=presentation).exists()

    def test_label_required(self, presentation):
        """An empty label is refused."""
        with pytest.raises(InventoryError) as exc:
            stock.add_price(presentation, '  ', 100)

        assert exc.value.code == 'LABEL_REQUIRED'

    def test_unknown_presentation(self, db):
        """Unknown presentation raises ReferenceNotFoundError."""
        with pytest.raises(ReferenceNotFoundError):
            stock.add_price(999999, 'Détail', 100)


class TestListPrices:
    """Tests for stock.list_prices()."""

    def test_default_first_then_label(self, presentation):
        """Default comes first, the others by label."""
        stock.add_price(presentation, 'Zone', 500)
        stock.add_price(presentation, 'Gros', 800)
        stock.add_price(presentation, 'Détail', 1000, True)
        stock.add_price(presentation, 'Client fidèle', 900)

        labels = [p.label for p in stock.list_prices(presentation)]

        assert labels == ['Détail', 'Client fidèle', 'Gros', 'Zone']


class TestUpdatePrice:
    """Tests for stock.update_price() and stock.set_default()."""

    def test_change_amount_and_label(self, presentation):
        """Label and amount are edited in place."""
        price = stock.add_price(presentation, 'Détail', 1000)

        stock.update_price(price, label='Comptoir', price='1100')

        price.refresh_from_db()
        assert price.label == 'Comptoir'
        assert price.price == Decimal('1100')
        assert price.is_default is True

    def test_promote(self, presentation):
        """Setting the flag demotes the previous default."""
        detail = stock.add_price(presentation, 'Détail', 1000)
        gros = stock.add_price(presentation, 'Gros', 800)

        stock.update_price(gros, is_default=True)

        detail.refresh_from_db()
        assert gros.is_default is True
        assert detail.is_default is False
        assert _defaults(presentation) == 1

    def test_clear_flag_hands_over(self, presentation):
        """Clearing the default promotes the first other price by label."""
        detail = stock.add_price(presentation, 'Détail', 1000)
        zone = stock.add_price(presentation, 'Zone', 500)
        gros = stock.add_price(presentation, 'Gros', 800)

        stock.update_price(detail, is_default=False)

        gros.refresh_from_db()
        zone.refresh_from_db()
        assert detail.is_default is False
        assert gros.is_default is True
        assert zone.is_default is False

    def test_clear_flag_on_sole_price(self, presentation):
        """A sole price stays default."""
        detail = stock.add_price(presentation, 'Détail', 1000)

        stock.update_price(detail, is_default=False)

        detail.refresh_from_db()
        assert detail.is_default is True

    def test_set_default(self, presentation):
        """set_default() is a shortcut for is_default=True."""
        stock.add_price(presentation, 'Détail', 1000)
        gros = stock.add_price(presentation, 'Gros', 800)

        stock.set_default(gros)

        assert stock.default_price(presentation) == gros

    def test_invalid_amount_keeps_state(self, presentation):
        """A bad amount changes nothing."""
        detail = stock.add_price(presentation, 'Détail', 1000)

        with pytest.raises(InvalidQuantityError):
            stock.update_price(detail, price=0)

        detail.refresh_from_db()
        assert detail.price == Decimal('1000')

    def test_unknown_price(self, db):
        """Unknown price raises ReferenceNotFoundError."""
        with pytest.raises(ReferenceNotFoundError):
            stock.update_price(999999, price=10)


class TestDeletePrice:
    """Tests for stock.delete_price()."""

    def test_delete_default_promotes(self, presentation):
        """Deleting the default promotes the first remaining price by label."""
        detail = stock.add_price(presentation, 'Détail', 1000)
        zone = stock.add_price(presentation, 'Zone', 500)
        gros = stock.add_price(presentation, 'Gros', 800)

        stock.delete_price(detail)

        assert stock.default_price(presentation).pk == gros.pk
        assert SellingPrice.objects.filter(pk=zone.pk, is_default=False).exists()

    def test_delete_non_default(self, presentation):
        """Deleting another price keeps the default."""
        detail = stock.add_price(presentation, 'Détail', 1000)
        gros = stock.add_price(presentation, 'Gros', 800)

        stock.delete_price(gros)

        assert stock.default_price(presentation).pk == detail.pk

    def test_delete_last(self, presentation):
        """An empty set has no default."""
        detail = stock.add_price(presentation, 'Détail', 1000)

        stock.delete_price(detail)

        assert stock.default_price(presentation) is None
        stock.check_prices(presentation)


class TestSetDefaultAmount:
    """Tests for stock.set_default_amount()."""

    def test_creates_standard_price(self, presentation):
        """An empty set gets a default labelled 'Standard'."""
        price = stock.set_default_amount(presentation, 1500)

        assert price.label == 'Standard'
        assert price.is_default is True

    def test_updates_existing_default(self, presentation):
        """The default's amount changes, nothing else."""
        stock.add_price(presentation, 'Détail', 1000)
        stock.add_price(presentation, 'Gros', 800)

        price = stock.set_default_amount(presentation, 1200)

        assert price.label == 'Détail'
        assert price.price == Decimal('1200')
        assert SellingPrice.objects.filter(presentation=presentation).count() == 2


class TestSingleDefault:
    """Exactly one default after every call, for all call orders."""

    OPERATIONS = ['add_default', 'add_plain', 'promote_last', 'clear_default', 'delete_default']

    def _run(self, presentation, name, step):
        prices = list(SellingPrice.objects.filter(presentation=presentation).order_by('pk'))
        default = next((p for p in prices if p.is_default), None)

        if name == 'add_default':
            stock.add_price(presentation, f'P{step}', 100 + step, True)
        elif name == 'add_plain':
            stock.add_price(presentation, f'P{step}', 100 + step)
        elif name == 'promote_last' and prices:
            stock.update_price(prices[-1], is_default=True)
        elif name == 'clear_default' and default:
            stock.update_price(default, is_default=False)
        elif name == 'delete_default' and default:
            stock.delete_price(default)

    @pytest.mark.parametrize('order', list(permutations(OPERATIONS)))
    def test_all_orders(self, presentation, order):
        """Any sequence of operations keeps exactly one default."""
        for step, name in enumerate(order * 2):
            self._run(presentation, name, step)
            _assert_single_default(presentation)


class TestDatabaseGuard:
    """The partial unique constraint refuses a second default."""

    def test_second_default_rejected(self, presentation):
        """Writing around the service cannot create two defaults."""
        stock.add_price(presentation, 'Détail', 1000)

        with pytest.raises(IntegrityError):
            with transaction.atomic():
                SellingPrice.objects.create(
                    presentation=presentation, label='Gros', price=800, is_default=True,
                )


@pytest.fixture
def without_default_constraint(transactional_db):
    """Drop the single-default index so legacy data can be written."""
    constraint = next(
        c for c in SellingPrice._meta.constraints if c.name == 'unique_default_selling_price'
    )
    with connection.schema_editor() as editor:
        editor.remove_constraint(SellingPrice, constraint)
    yield
    SellingPrice.objects.update(is_default=False)
    with connection.schema_editor() as editor:
        editor.add_constraint(SellingPrice, constraint)


class TestReconcile:
    """Tests for stock.reconcile_prices() and stock.check_prices()."""

    def test_no_default_promotes_oldest(self, presentation):
        """A set without default gets its oldest price promoted."""
        first = SellingPrice.objects.create(presentation=presentation, label='Zone', price=500)
        SellingPrice.objects.create(presentation=presentation, label='Gros', price=800)

        with pytest.raises(InvariantViolationError):
            stock.check_prices(presentation)

        kept = stock.reconcile_prices(presentation)

        assert kept.pk == first.pk
        assert kept.is_default is True
        stock.check_prices(presentation)

    def test_consistent_set_untouched(self, presentation):
        """A healthy set is returned as is."""
        detail = stock.add_price(presentation, 'Détail', 1000)
        stock.add_price(presentation, 'Gros', 800)

        assert stock.reconcile_prices(presentation).pk == detail.pk

    def test_empty_set(self, presentation):
        """Nothing to reconcile on an empty set."""
        assert stock.reconcile_prices(presentation) is None

    @pytest.mark.django_db(transaction=True)
    def test_several_defaults_keep_oldest(self, without_default_constraint, presentation):
        """With several defaults, the oldest stays and the others are demoted."""
        oldest = SellingPrice.objects.create(
            presentation=presentation, label='Zone', price=500, is_default=True,
        )
        SellingPrice.objects.create(presentation=presentation, label='Gros', price=800, is_default=True)
        SellingPrice.objects.create(presentation=presentation, label='Détail', price=1000, is_default=True)

        with pytest.raises(InvariantViolationError):
            stock.check_prices(presentation)

        kept = stock.reconcile_prices(presentation)

        assert kept.pk == oldest.pk
        assert list(
            SellingPrice.objects.filter(presentation=presentation, is_default=True)
        ) == [oldest]
        stock.check_prices(presentation)
