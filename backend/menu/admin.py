from django.contrib import admin

from .models import MenuItem


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ("name", "price", "is_available", "updated_at")
    list_filter = ("is_available",)
    search_fields = ("name",)
