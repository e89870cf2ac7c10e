from django.contrib import admin
from .models import Order, OrderItem, OrderTracking


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ("item_name", "quantity", "unit_price", "line_total", "special_instructions")
    fields = readonly_fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


class OrderTrackingInline(admin.TabularInline):
    model = OrderTracking
    extra = 0
    readonly_fields = ("status", "message", "metadata", "created_at")
    fields = readonly_fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Read-mostly admin for orders. Status changes go through the API so the
    state machine and its side effects always run.
    """

    list_display = (
        "order_number",
        "customer",
        "status",
        "payment_status",
        "total",
        "created_at",
    )
    list_filter = ("status", "payment_status", "created_at")
    search_fields = ("order_number", "customer__email", "payment_intent_id")
    ordering = ("-created_at",)
    inlines = [OrderItemInline, OrderTrackingInline]
    readonly_fields = (
        "order_number",
        "status",
        "payment_status",
        "subtotal",
        "tax",
        "delivery_fee",
        "discount",
        "total",
        "offer",
        "offer_usage_claimed",
        "loyalty_points_redeemed",
        "loyalty_points_awarded",
        "payment_intent_id",
        "actual_delivery_time",
        "created_at",
        "updated_at",
    )
