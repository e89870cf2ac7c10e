import logging
import secrets
import time
import uuid
from decimal import Decimal

from django.db import IntegrityError, models, transaction
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

logger = logging.getLogger(__name__)

BASE36_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _to_base36(value: int) -> str:
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits)) or "0"


def generate_order_number() -> str:
    """ORD-<base36 epoch millis>-<5 random base36 chars>, e.g. ORD-LZ3K9QX2-7FQ0A."""
    timestamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(5))
    return f"ORD-{timestamp}-{suffix}"


class ImmutableRecordError(Exception):
    """Raised when code tries to rewrite an append-only or snapshot row."""


class Order(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        CONFIRMED = "confirmed", _("Confirmed")
        PREPARING = "preparing", _("Preparing")
        READY = "ready", _("Ready")
        OUT_FOR_DELIVERY = "out_for_delivery", _("Out for Delivery")
        DELIVERED = "delivered", _("Delivered")
        CANCELLED = "cancelled", _("Cancelled")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        COMPLETED = "completed", _("Completed")
        FAILED = "failed", _("Failed")
        REFUNDED = "refunded", _("Refunded")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=32, unique=True, editable=False)
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.PENDING
    )
    payment_status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING
    )

    # --- Financials (fixed at creation, never recomputed after capture) ---
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    tax = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    delivery_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    discount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))

    # --- Offer and loyalty ---
    offer = models.ForeignKey(
        "offers.Offer",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="orders",
    )
    offer_usage_claimed = models.BooleanField(
        default=False,
        help_text=_("Set once the offer's usage counter has been incremented for this order."),
    )
    loyalty_points_redeemed = models.PositiveIntegerField(default=0)
    loyalty_points_awarded = models.BooleanField(
        default=False,
        help_text=_("Set once delivery points have been credited."),
    )

    # --- Payment ---
    payment_intent_id = models.CharField(max_length=255, blank=True, db_index=True)

    # --- Delivery ---
    delivery_address = models.ForeignKey(
        "customers.CustomerAddress",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    customer_notes = models.TextField(blank=True)
    kitchen_notes = models.TextField(blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    estimated_delivery_time = models.DateTimeField(null=True, blank=True)
    actual_delivery_time = models.DateTimeField(null=True, blank=True)

    idempotency_key = models.CharField(
        max_length=128,
        unique=True,
        null=True,
        blank=True,
        help_text=_("Client supplied key; a repeated create returns the original order."),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Order")
        verbose_name_plural = _("Orders")
        ordering = ["-created_at", "order_number"]
        indexes = [
            models.Index(fields=["customer", "status"], name="order_customer_status_idx"),
            models.Index(fields=["status", "created_at"], name="order_status_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(discount__gte=0) & Q(total__gte=0),
                name="order_amounts_not_negative",
            ),
        ]

    def __str__(self):
        return f"Order {self.order_number or self.pk} - {self.status}"

    @property
    def is_terminal(self):
        return self.status in (self.Status.DELIVERED, self.Status.CANCELLED)

    def totals_balance(self) -> bool:
        return self.total == self.subtotal + self.tax + self.delivery_fee - self.discount

    def save(self, *args, **kwargs):
        # Generate order_number only if it's not already set
        if self.order_number:
            super().save(*args, **kwargs)
            return

        max_retries = 5
        for attempt in range(max_retries):
            self.order_number = generate_order_number()
            try:
                with transaction.atomic():
                    super().save(*args, **kwargs)
                return
            except IntegrityError:
                if not Order.objects.filter(order_number=self.order_number).exists():
                    self.order_number = ""
                    raise
                logger.warning(f"Order number collision on {self.order_number} (attempt {attempt + 1})")
        self.order_number = ""
        raise IntegrityError("Failed to generate a unique order number after multiple retries.")


class OrderItem(models.Model):
    """
    A line on an order. Name and price are copied from the menu when the
    order is placed and never re-read from the live catalog.
    """

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    menu_item = models.ForeignKey(
        "menu.MenuItem",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    item_name = models.CharField(max_length=200)
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text=_("Price of the menu item at the time of ordering."),
    )
    line_total = models.DecimalField(max_digits=10, decimal_places=2)
    special_instructions = models.TextField(blank=True)

    class Meta:
        verbose_name = _("Order Item")
        verbose_name_plural = _("Order Items")
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gt=0), name="order_item_quantity_positive"),
        ]

    def __str__(self):
        return f"{self.quantity} of {self.item_name} in Order {self.order.order_number}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRecordError("Order items cannot be modified once created")
        super().save(*args, **kwargs)


class OrderTracking(models.Model):
    """Append-only audit trail of status transitions."""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="tracking")
    status = models.CharField(max_length=20, choices=Order.Status.choices)
    message = models.CharField(max_length=255)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(default=timezone.now, editable=False)

    class Meta:
        verbose_name = _("Order Tracking Entry")
        verbose_name_plural = _("Order Tracking")
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"{self.order_id} -> {self.status} at {self.created_at:%Y-%m-%d %H:%M}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRecordError("Tracking entries are append-only")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError("Tracking entries are append-only")
