"""
Tests for the admin: pages render, quantities stay read-only, actions work.
"""

import pytest
from django.contrib import admin
from django.urls import reverse

from stockkeeper import stock
from stockkeeper.models import (
    MovementStatus,
    Presentation,
    Product,
    Sale,
    SaleStatus,
    StockAlert,
    StockMovement,
    Supply,
)


pytestmark = pytest.mark.django_db


class TestRegistration:
    """Every model is registered."""

    @pytest.mark.parametrize('model', [
        Product, Presentation, StockMovement, Supply, Sale, StockAlert,
    ])
    def test_registered(self, model):
        assert admin.site.is_registered(model)

    def test_quantity_read_only(self):
        """The quantity cache is never editable from the admin."""
        model_admin = admin.site._registry[Presentation]
        assert '_quantity' in model_admin.readonly_fields


class TestPages:
    """Changelists and change pages render."""

    @pytest.mark.parametrize('name', [
        'product', 'presentation', 'stockmovement', 'supply', 'sale', 'stockalert',
    ])
    def test_changelist(self, admin_client, stocked, supply, name):
        stock.create_sale(stocked, 1, unit_price=100)
        stock.record_sale(stocked, 96)

        response = admin_client.get(reverse(f'admin:stockkeeper_{name}_changelist'))

        assert response.status_code == 200

    def test_presentation_change_page(self, admin_client, stocked):
        stock.add_price(stocked, 'Détail', 1000)

        response = admin_client.get(
            reverse('admin:stockkeeper_presentation_change', args=[stocked.pk])
        )

        assert response.status_code == 200
        assert 'Détail' in response.content.decode()


class TestActions:
    """Admin actions go through the stock service."""

    def _post(self, admin_client, name, action, pks):
        return admin_client.post(
            reverse(f'admin:stockkeeper_{name}_changelist'),
            {'action': action, '_selected_action': [str(pk) for pk in pks]},
        )

    def test_cancel_movements(self, admin_client, stocked):
        """Selected movements are cancelled newest first."""
        first = stock.record_sale(stocked, 10)
        second = stock.record_sale(stocked, 5)

        self._post(admin_client, 'stockmovement', 'cancel_movements', [first.pk, second.pk])

        assert set(
            StockMovement.objects.filter(pk__in=[first.pk, second.pk]).values_list('status', flat=True)
        ) == {MovementStatus.CANCELLED}
        assert stock.current_quantity(stocked) == 100

    def test_cancel_sales(self, admin_client, stocked):
        sale = stock.create_sale(stocked, 4, unit_price=100)

        self._post(admin_client, 'sale', 'cancel_sales', [sale.pk])

        sale.refresh_from_db()
        assert sale.status == SaleStatus.CANCELLED
        assert stock.current_quantity(stocked) == 100

    def test_mark_read(self, admin_client, stocked):
        stock.record_sale(stocked, 100)
        alert = StockAlert.objects.get()

        self._post(admin_client, 'stockalert', 'mark_read', [alert.pk])

        alert.refresh_from_db()
        assert alert.is_read is True
