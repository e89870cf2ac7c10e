from django.contrib import admin
from .models import PaymentWebhookEvent


@admin.register(PaymentWebhookEvent)
class PaymentWebhookEventAdmin(admin.ModelAdmin):
    list_display = ("event_id", "event_type", "order", "outcome", "detail", "created_at")
    list_filter = ("event_type", "outcome")
    search_fields = ("event_id", "order__order_number")
    readonly_fields = ("event_id", "event_type", "order", "outcome", "detail", "payload", "created_at")

    def has_add_permission(self, request):
        return False
