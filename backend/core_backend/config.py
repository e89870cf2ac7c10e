"""
Read access to the fulfillment engine policy.

Policy values live in settings.FULFILLMENT. Missing keys fall back to the
reference policy below so a partially configured deployment still prices
orders consistently.
"""

from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

DEFAULTS = {
    "CURRENCY": "INR",
    "TAX_RATE": Decimal("0.18"),
    "DELIVERY_FEE": Decimal("50.00"),
    "FREE_DELIVERY_THRESHOLD": Decimal("500.00"),
    "PREPARATION_MINUTES": 30,
    "DELIVERY_MINUTES": 30,
    "LOYALTY_POINTS_PER_BLOCK": 1000,
    "LOYALTY_BLOCK_VALUE": Decimal("10.00"),
    "LOYAL_CUSTOMER_ORDER_COUNT": 5,
    "OFFER_USAGE_RELEASE_ON_CANCEL": True,
    "KITCHEN_GROUP": "kitchen_notifications",
}

DECIMAL_KEYS = {"TAX_RATE", "DELIVERY_FEE", "FREE_DELIVERY_THRESHOLD", "LOYALTY_BLOCK_VALUE"}


class EngineSettings:
    """
    Lazy view over settings.FULFILLMENT.

    Values are read on every access so tests can use override_settings; the
    object itself holds no state.
    """

    def __getattr__(self, name: str) -> Any:
        if name not in DEFAULTS:
            raise AttributeError(f"'EngineSettings' object has no attribute '{name}'")

        configured = getattr(settings, "FULFILLMENT", {}) or {}
        value = configured.get(name, DEFAULTS[name])

        if name in DECIMAL_KEYS:
            try:
                value = Decimal(str(value))
            except (InvalidOperation, TypeError, ValueError) as e:
                raise ImproperlyConfigured(f"FULFILLMENT['{name}'] must be a decimal: {e}")
            if value < 0:
                raise ImproperlyConfigured(f"FULFILLMENT['{name}'] cannot be negative")
        return value

    @property
    def estimated_delivery_window(self) -> timedelta:
        return timedelta(minutes=self.PREPARATION_MINUTES + self.DELIVERY_MINUTES)


engine_settings = EngineSettings()
