"""
Pytest fixtures for Stockkeeper tests.
"""

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model

from stockkeeper import stock
from stockkeeper.adapters import get_notifier, reset_notifier
from stockkeeper.models import Presentation, Product


User = get_user_model()


@pytest.fixture(autouse=True)
def _fresh_notifier():
    """Never share a cached notifier between tests."""
    reset_notifier()
    yield
    reset_notifier()


@pytest.fixture
def notifier():
    """The configured MemoryNotifier."""
    return get_notifier()


@pytest.fixture
def user(db):
    """Create a test user."""
    return User.objects.create_user(
        username='testuser',
        password='testpass123'
    )


@pytest.fixture
def product(db):
    """Create a test product."""
    return Product.objects.create(
        name='Paracétamol',
        category='Antalgiques',
    )


@pytest.fixture
def presentation(db, product):
    """A presentation with no movement yet (quantity 0)."""
    return Presentation.objects.create(
        product=product,
        size='500 mg',
        unit='Boîte',
        purchase_price=Decimal('1500.00'),
        low_stock_threshold=5,
    )


@pytest.fixture
def other_presentation(db, product):
    """A second presentation of the same product."""
    return Presentation.objects.create(
        product=product,
        size='1 g',
        unit='Boîte',
        purchase_price=Decimal('2500.00'),
        low_stock_threshold=0,
    )


@pytest.fixture
def stocked(presentation):
    """Presentation with an opening stock of 100."""
    stock.record_initial_stock(presentation, 100)
    return presentation


@pytest.fixture
def supply(db, presentation, other_presentation):
    """Order with two lines: 50 of presentation, 10 of other_presentation."""
    return stock.create_supply(
        [
            {'presentation': presentation, 'ordered_quantity': 50,
             'purchase_price': Decimal('1400.00'), 'selling_price': Decimal('2000.00')},
            {'presentation': other_presentation, 'ordered_quantity': 10},
        ],
        description='Commande fournisseur',
    )
