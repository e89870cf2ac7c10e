from django.contrib import admin
from .models import LoyaltyBalance


@admin.register(LoyaltyBalance)
class LoyaltyBalanceAdmin(admin.ModelAdmin):
    list_display = ("customer", "balance", "updated_at")
    search_fields = ("customer__email",)
    readonly_fields = ("balance", "updated_at")
