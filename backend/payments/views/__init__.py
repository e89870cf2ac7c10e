"""
Payment views package.

- intents.py: payment intent creation for pending orders
- webhooks.py: Stripe webhook handler
- base.py: shared base view
"""

from .intents import CreateOrderPaymentIntentView
from .webhooks import StripeWebhookView

__all__ = [
    "CreateOrderPaymentIntentView",
    "StripeWebhookView",
]
