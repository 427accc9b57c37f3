"""
Stockkeeper Admin.

Stock only changes through the stock service, so every quantity-bearing
view here is read-only:
- Product: list + edit
- Presentation: edit descriptive fields, quantity read-only, prices inline
- StockMovement: read-only audit trail with "cancel" action
- Supply: read-only with lines inline
- Sale: read-only with "cancel" action
- StockAlert: read-only with "mark as read" action
"""

import logging

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from stockkeeper.exceptions import InventoryError
from stockkeeper.models import (
    MovementStatus,
    Presentation,
    Product,
    Sale,
    SaleStatus,
    SellingPrice,
    StockAlert,
    StockMovement,
    Supply,
    SupplyLine,
)

logger = logging.getLogger(__name__)


class ReadOnlyAdminMixin:
    """No add, change or delete from the admin."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =========================================================================
# PRODUCT / PRESENTATION ADMIN
# =========================================================================

class PresentationInline(admin.TabularInline):
    model = Presentation
    fields = ['size', 'unit', 'sku', 'purchase_price', 'low_stock_threshold', '_quantity']
    readonly_fields = ['_quantity']
    extra = 0
    show_change_link = True

    def has_add_permission(self, request, obj=None):
        # New presentations need their INITIAL movement: stock.create_presentation()
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Product admin — editable."""

    list_display = ['name', 'category', 'created_at']
    list_filter = ['category']
    search_fields = ['name', 'category']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [PresentationInline]


class SellingPriceInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = SellingPrice
    fields = ['label', 'price', 'is_default']
    readonly_fields = ['label', 'price', 'is_default']
    extra = 0


@admin.register(Presentation)
class PresentationAdmin(admin.ModelAdmin):
    """Presentation admin — descriptive fields only. Quantity changes via the stock service."""

    list_display = ['__str__', 'sku', 'quantity_display', 'low_stock_threshold',
                    'default_price_display', 'is_low_stock_display']
    list_filter = ['product__category']
    search_fields = ['product__name', 'sku', 'unit']
    readonly_fields = ['product', '_quantity', 'created_at', 'updated_at']
    list_select_related = ['product']
    inlines = [SellingPriceInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.display(description=_('Stock'), ordering='_quantity')
    def quantity_display(self, obj):
        return obj.quantity

    @admin.display(description=_('Prix par défaut'))
    def default_price_display(self, obj):
        default = obj.selling_prices.filter(is_default=True).first()
        return default.price if default else '-'

    @admin.display(description=_('Stock bas ?'), boolean=True)
    def is_low_stock_display(self, obj):
        return obj.is_low_stock


# =========================================================================
# MOVEMENT ADMIN (read-only audit trail)
# =========================================================================

@admin.register(StockMovement)
class StockMovementAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """StockMovement admin — read-only. Immutable audit trail."""

    list_display = ['created_at', 'presentation', 'reason', 'quantity_in', 'quantity_out',
                    'stock_before', 'stock_after', 'status', 'user']
    list_filter = ['reason', 'status', 'created_at']
    search_fields = ['presentation__product__name', 'note']
    readonly_fields = ['presentation', 'product', 'quantity_in', 'quantity_out',
                       'stock_before', 'stock_after', 'reason', 'status', 'sale',
                       'supply_line', 'note', 'metadata', 'user', 'created_at', 'updated_at']
    date_hierarchy = 'created_at'
    list_select_related = ['presentation__product', 'user']
    actions = ['cancel_movements']

    @admin.action(description=_('Annuler les mouvements sélectionnés'))
    def cancel_movements(self, request, queryset):
        from stockkeeper import stock

        count = 0
        # Newest first: each cancellation makes the previous one the latest
        for movement in queryset.filter(status=MovementStatus.ACTIVE).order_by('-pk'):
            try:
                stock.cancel_movement(movement)
                count += 1
            except InventoryError as exc:
                logger.warning("cancel_movements: failed to cancel %s: %s", movement.pk, exc)

        self.message_user(request, _('{count} mouvement(s) annulé(s).').format(count=count))


# =========================================================================
# SUPPLY ADMIN
# =========================================================================

class SupplyLineInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = SupplyLine
    fields = ['presentation', 'ordered_quantity', 'received_quantity',
              'purchase_price', 'selling_price', 'status']
    readonly_fields = fields
    extra = 0


@admin.register(Supply)
class SupplyAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Supply admin — read-only. Receipts go through stock.receive_line()."""

    list_display = ['id', 'status', 'lines_display', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['description']
    readonly_fields = ['description', 'status', 'created_at', 'updated_at']
    inlines = [SupplyLineInline]

    @admin.display(description=_('Lignes'))
    def lines_display(self, obj):
        return obj.lines.count()


# =========================================================================
# SALE ADMIN
# =========================================================================

@admin.register(Sale)
class SaleAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Sale admin — read-only with cancel action."""

    list_display = ['id', 'sale_date', 'presentation', 'quantity', 'unit_price',
                    'total_amount', 'client_name', 'status']
    list_filter = ['status', 'sale_date']
    search_fields = ['client_name', 'presentation__product__name']
    readonly_fields = ['presentation', 'product', 'quantity', 'unit_price', 'total_amount',
                       'sale_date', 'client_name', 'description', 'status', 'created_by',
                       'created_at', 'updated_at']
    date_hierarchy = 'sale_date'
    list_select_related = ['presentation__product']
    actions = ['cancel_sales']

    @admin.action(description=_('Annuler les ventes sélectionnées'))
    def cancel_sales(self, request, queryset):
        from stockkeeper import stock

        count = 0
        for sale in queryset.filter(status=SaleStatus.ACTIVE):
            try:
                stock.cancel_sale(sale, user=request.user)
                count += 1
            except InventoryError as exc:
                logger.warning("cancel_sales: failed to cancel %s: %s", sale.pk, exc)

        self.message_user(request, _('{count} vente(s) annulée(s).').format(count=count))


# =========================================================================
# STOCK ALERT ADMIN
# =========================================================================

@admin.register(StockAlert)
class StockAlertAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """StockAlert admin — read-only with mark-as-read action."""

    list_display = ['created_at', 'presentation', 'kind', 'quantity', 'threshold', 'is_read']
    list_filter = ['kind', 'is_read']
    search_fields = ['message', 'presentation__product__name']
    readonly_fields = ['presentation', 'product', 'kind', 'quantity', 'threshold',
                       'message', 'is_read', 'created_at']
    actions = ['mark_read']

    @admin.action(description=_('Marquer comme lues'))
    def mark_read(self, request, queryset):
        count = queryset.filter(is_read=False).update(is_read=True)
        self.message_user(request, _('{count} alerte(s) marquée(s) comme lue(s).').format(count=count))
