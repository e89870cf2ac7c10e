from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q
from django.utils import timezone


class Offer(models.Model):
    class DiscountType(models.TextChoices):
        PERCENTAGE = "percentage", "Percentage"
        FIXED_AMOUNT = "fixed_amount", "Fixed Amount"
        FREE_DELIVERY = "free_delivery", "Free Delivery"

    class Audience(models.TextChoices):
        ALL = "all", "All Customers"
        NEW_CUSTOMERS = "new_customers", "New Customers"
        LOYAL_CUSTOMERS = "loyal_customers", "Loyal Customers"

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    discount_type = models.CharField(
        max_length=20,
        choices=DiscountType.choices,
    )
    discount_value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Percentage (0-100) or fixed amount. Ignored for free delivery.",
    )
    minimum_order_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="The minimum subtotal required for the offer to apply.",
    )
    maximum_discount_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Upper bound on the discount this offer can produce.",
    )
    usage_limit = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Total redemptions allowed across all customers. Empty means unlimited.",
    )
    used_count = models.PositiveIntegerField(default=0)

    valid_from = models.DateTimeField()
    valid_until = models.DateTimeField()
    is_active = models.BooleanField(default=True)
    target_audience = models.CharField(
        max_length=20,
        choices=Audience.choices,
        default=Audience.ALL,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(usage_limit__isnull=True) | Q(used_count__lte=F("usage_limit")),
                name="offer_used_count_within_limit",
            ),
            models.CheckConstraint(
                condition=Q(valid_until__gte=F("valid_from")),
                name="offer_valid_window_ordered",
            ),
        ]
        indexes = [
            models.Index(fields=["is_active", "valid_from", "valid_until"], name="offer_active_window_idx"),
        ]

    def __str__(self):
        return self.title

    def clean(self):
        if self.valid_from and self.valid_until and self.valid_until < self.valid_from:
            raise ValidationError({"valid_until": "Offer cannot end before it starts."})
        if (
            self.discount_type == self.DiscountType.PERCENTAGE
            and not Decimal("0") <= self.discount_value <= Decimal("100")
        ):
            raise ValidationError({"discount_value": "Percentage must be between 0 and 100."})

    def is_within_window(self, now=None):
        now = now or timezone.now()
        return self.is_active and self.valid_from <= now <= self.valid_until

    @property
    def has_remaining_usage(self):
        return self.usage_limit is None or self.used_count < self.usage_limit
