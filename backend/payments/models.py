from django.db import models
from django.utils.translation import gettext_lazy as _


class PaymentWebhookEvent(models.Model):
    """
    One row per gateway event id. Written in the same transaction as the
    effects of the event, so a replayed delivery hits the unique constraint
    instead of applying its effects twice.
    """

    class Outcome(models.TextChoices):
        PROCESSED = "processed", _("Processed")
        IGNORED = "ignored", _("Ignored")

    event_id = models.CharField(max_length=255, unique=True)
    event_type = models.CharField(max_length=100)
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payment_events",
    )
    outcome = models.CharField(max_length=20, choices=Outcome.choices, default=Outcome.PROCESSED)
    detail = models.CharField(max_length=100, blank=True)
    payload = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Payment Webhook Event")
        verbose_name_plural = _("Payment Webhook Events")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["event_type", "created_at"], name="payment_event_type_idx"),
        ]

    def __str__(self):
        return f"{self.event_type} {self.event_id} ({self.outcome})"
