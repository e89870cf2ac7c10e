import uuid

from django.db import models
from django.utils.translation import gettext_lazy as _


class MenuItem(models.Model):
    """
    A dish on the live catalog. Orders copy name and price at creation time
    and never read them back from here.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200, help_text=_("Name of the dish."))
    description = models.TextField(blank=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text=_("Current selling price."),
    )
    is_available = models.BooleanField(
        default=True,
        help_text=_("Unavailable items cannot be ordered."),
    )
    preparation_minutes = models.PositiveIntegerField(default=15)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["is_available"], name="menu_item_available_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.price})"
