"""
Stripe gateway client.

The API key is held by the instance and passed on every call instead of
being assigned to the module-level stripe.api_key, so two gateways with
different keys can coexist in one process and tests can build their own.
"""
import json
import logging
from typing import Any, Dict, Optional

import stripe
from django.conf import settings

from .exceptions import InvalidSignature, PaymentGatewayError

logger = logging.getLogger(__name__)


class StripeGateway:
    def __init__(self, api_key: str, webhook_secret: str = "", webhook_tolerance: int = 300):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.webhook_tolerance = webhook_tolerance

    @classmethod
    def from_settings(cls) -> "StripeGateway":
        return cls(
            api_key=settings.STRIPE_SECRET_KEY,
            webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
            webhook_tolerance=settings.STRIPE_WEBHOOK_TOLERANCE,
        )

    def construct_event(self, payload: bytes, sig_header: Optional[str]) -> Dict[str, Any]:
        """
        Verifies the Stripe-Signature header and returns the event as a plain
        dict. Any verification or parse failure raises InvalidSignature.
        """
        if not self.webhook_secret:
            logger.error("Stripe webhook secret is not configured")
            raise InvalidSignature("Webhook secret is not configured")
        if not sig_header:
            raise InvalidSignature("Missing Stripe-Signature header")

        if isinstance(payload, bytes):
            try:
                payload = payload.decode("utf-8")
            except UnicodeDecodeError:
                raise InvalidSignature("Invalid webhook payload")

        try:
            stripe.WebhookSignature.verify_header(
                payload, sig_header, self.webhook_secret, tolerance=self.webhook_tolerance
            )
        except stripe.SignatureVerificationError as e:
            logger.error(f"Stripe webhook: Invalid signature - {e}")
            raise InvalidSignature("Invalid webhook signature")

        try:
            event = json.loads(payload)
        except ValueError as e:
            logger.error(f"Stripe webhook: Invalid payload - {e}")
            raise InvalidSignature("Invalid webhook payload")
        if not isinstance(event, dict) or "id" not in event or "type" not in event:
            raise InvalidSignature("Invalid webhook payload")
        return event

    def create_payment_intent(
        self,
        amount_minor: int,
        currency: str,
        metadata: Dict[str, str],
        idempotency_key: Optional[str] = None,
    ) -> Any:
        try:
            return stripe.PaymentIntent.create(
                amount=amount_minor,
                currency=currency.lower(),
                metadata=metadata,
                automatic_payment_methods={"enabled": True},
                api_key=self.api_key,
                idempotency_key=idempotency_key,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe PaymentIntent create failed for {metadata}: {e}")
            raise PaymentGatewayError(
                "Payment provider could not create the payment",
                details={"provider_message": getattr(e, "user_message", None) or str(e)},
            )

    def refund(self, payment_intent_id: str, reason: Optional[str] = None, idempotency_key: Optional[str] = None) -> Any:
        try:
            return stripe.Refund.create(
                payment_intent=payment_intent_id,
                reason=reason,
                api_key=self.api_key,
                idempotency_key=idempotency_key,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe refund error for payment intent {payment_intent_id}: {e}")
            raise PaymentGatewayError(
                "Payment provider could not refund the payment",
                details={"payment_intent_id": payment_intent_id},
            )
