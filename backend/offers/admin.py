from django.contrib import admin
from .models import Offer


@admin.register(Offer)
class OfferAdmin(admin.ModelAdmin):
    """
    Admin interface for managing promotional offers.
    """

    list_display = (
        "title",
        "discount_type",
        "discount_value",
        "target_audience",
        "used_count",
        "usage_limit",
        "is_active",
        "valid_from",
        "valid_until",
    )
    list_filter = ("discount_type", "target_audience", "is_active")
    search_fields = ("title",)
    ordering = ("-valid_from",)
    readonly_fields = ("used_count",)

    fieldsets = (
        (None, {"fields": ("title", "description", "is_active")}),
        ("Rule", {"fields": ("discount_type", "discount_value", "minimum_order_amount", "maximum_discount_amount")}),
        ("Eligibility", {"fields": ("target_audience", "usage_limit", "used_count")}),
        ("Timeframe", {"fields": ("valid_from", "valid_until")}),
    )
