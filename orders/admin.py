from django.contrib import admin

from .models import Order, OrderItem, OrderStatusEvent


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = ("position", "product_id", "title", "quantity", "price", "unit")

    def has_add_permission(self, request, obj=None):
        return False


class OrderStatusEventInline(admin.TabularInline):
    model = OrderStatusEvent
    extra = 0
    can_delete = False
    readonly_fields = ("from_status", "to_status", "actor_role", "actor", "note", "created_at")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    # Status changes go through the API so that history stays complete.
    list_display = ("id", "customer", "seller", "status", "payment_method", "payment_status", "total", "created_at")
    list_filter = ("status", "payment_method", "payment_status", "created_at")
    search_fields = ("id", "customer__username", "seller__username", "seller__shop_name")
    date_hierarchy = "created_at"
    raw_id_fields = ("customer", "seller")
    readonly_fields = (
        "customer",
        "seller",
        "subtotal",
        "delivery_charges",
        "total",
        "payment_method",
        "prepayment_amount",
        "status",
        "contact_attempts",
        "delivery_address",
        "created_at",
        "updated_at",
    )
    inlines = [OrderItemInline, OrderStatusEventInline]


@admin.register(OrderStatusEvent)
class OrderStatusEventAdmin(admin.ModelAdmin):
    list_display = ("id", "order", "from_status", "to_status", "actor_role", "created_at")
    list_filter = ("from_status", "to_status", "actor_role", "created_at")
    search_fields = ("order__id", "note")
    date_hierarchy = "created_at"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
