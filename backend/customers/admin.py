"""
Customer admin interface.
"""
from django.contrib import admin

from .models import Customer, CustomerAddress


class CustomerAddressInline(admin.TabularInline):
    model = CustomerAddress
    extra = 0


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("email", "first_name", "last_name", "phone_number", "is_active", "date_joined")
    list_filter = ("is_active",)
    search_fields = ("email", "first_name", "last_name", "phone_number")
    inlines = [CustomerAddressInline]
