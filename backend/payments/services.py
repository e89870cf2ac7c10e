import logging
from typing import Any, Callable, Dict, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction

from core_backend.config import engine_settings
from offers.exceptions import UsageLimitReached
from orders.events import OrderEventPublisher
from orders.exceptions import OrderNotPayable
from orders.models import Order
from orders.services import OrderService

from .gateway import StripeGateway
from .models import PaymentWebhookEvent
from .money import to_minor

logger = logging.getLogger(__name__)


class PaymentIntentService:
    """Creates gateway payment intents for pending orders."""

    def __init__(self, gateway: Optional[StripeGateway] = None):
        self.gateway = gateway or StripeGateway.from_settings()

    def create_payment_intent(self, order_id) -> Dict[str, Any]:
        order = OrderService.get_order(order_id)
        if order.status != Order.Status.PENDING or order.payment_status != Order.PaymentStatus.PENDING:
            raise OrderNotPayable(
                f"Order {order.order_number} is not awaiting payment",
                details={"status": order.status, "payment_status": order.payment_status},
            )

        currency = engine_settings.CURRENCY
        amount_minor = to_minor(currency, order.total)
        intent = self.gateway.create_payment_intent(
            amount_minor=amount_minor,
            currency=currency,
            metadata={"order_id": str(order.id), "order_number": order.order_number},
            idempotency_key=f"order-{order.id}-intent",
        )
        OrderService.attach_payment_intent(order.id, intent.id)

        return {
            "order_id": str(order.id),
            "payment_intent_id": intent.id,
            "client_secret": intent.client_secret,
            "amount": amount_minor,
            "currency": currency.lower(),
        }


class PaymentReconciliationService:
    """
    Applies verified Stripe events to orders.

    Each event id is recorded in the same transaction as its effects, so
    duplicates are no-ops. Handlers tolerate events that arrive out of order:
    a success after the order already moved on only updates the payment
    status, and a failure after a completed payment is ignored.
    """

    SUCCEEDED = "payment_intent.succeeded"
    FAILED = "payment_intent.payment_failed"
    CANCELED = "payment_intent.canceled"
    REQUIRES_ACTION = "payment_intent.requires_action"

    def __init__(self, gateway: Optional[StripeGateway] = None):
        self.gateway = gateway or StripeGateway.from_settings()
        self.handlers: Dict[str, Callable[[Order, Dict[str, Any]], str]] = {
            self.SUCCEEDED: self._handle_succeeded,
            self.FAILED: self._handle_payment_failed,
            self.CANCELED: self._handle_canceled,
            self.REQUIRES_ACTION: self._handle_requires_action,
        }

    def handle_webhook(self, payload: bytes, sig_header: Optional[str]) -> str:
        """Verifies the signature, then processes the event. Returns the outcome detail."""
        event = self.gateway.construct_event(payload, sig_header)
        return self.process_event(event)

    def process_event(self, event: Dict[str, Any]) -> str:
        event_id = event["id"]
        event_type = event["type"]
        intent = event["data"]["object"]

        if PaymentWebhookEvent.objects.filter(event_id=event_id).exists():
            logger.info(f"Stripe event {event_id} already processed, skipping")
            return "duplicate"

        order = self._resolve_order(intent)

        try:
            with transaction.atomic():
                record = PaymentWebhookEvent.objects.create(
                    event_id=event_id,
                    event_type=event_type,
                    order=order,
                    payload=event,
                )

                handler = self.handlers.get(event_type)
                if order is None or handler is None:
                    detail = "unknown_order" if order is None else "unhandled_event_type"
                    logger.warning(f"Stripe event {event_id} ({event_type}) ignored: {detail}")
                    record.outcome = PaymentWebhookEvent.Outcome.IGNORED
                    record.detail = detail
                    record.save(update_fields=["outcome", "detail"])
                    return detail

                order = Order.objects.select_for_update().get(pk=order.pk)
                detail = handler(order, intent)
                record.detail = detail
                if detail.startswith("ignored"):
                    record.outcome = PaymentWebhookEvent.Outcome.IGNORED
                record.save(update_fields=["outcome", "detail"])
        except IntegrityError:
            if PaymentWebhookEvent.objects.filter(event_id=event_id).exists():
                logger.info(f"Stripe event {event_id} recorded concurrently, skipping")
                return "duplicate"
            raise

        logger.info(f"Stripe event {event_id} ({event_type}) for order {order.order_number}: {detail}")
        return detail

    # --- Handlers ---

    def _handle_succeeded(self, order: Order, intent: Dict[str, Any]) -> str:
        self._check_amount(order, intent)
        completed = Order.PaymentStatus.COMPLETED

        if order.payment_status == Order.PaymentStatus.REFUNDED:
            return "ignored_refunded"

        if order.status == Order.Status.CANCELLED:
            OrderService.update_payment_status(order.id, completed, "Payment captured on a cancelled order")
            self._schedule_refund(order, intent["id"])
            return "refund_scheduled"

        if order.status == Order.Status.PENDING:
            try:
                OrderService.confirm(order.id, payment_status=completed)
            except UsageLimitReached:
                logger.warning(
                    f"Offer {order.offer_id} exhausted before order {order.order_number} was paid; refunding"
                )
                OrderService.cancel_order(
                    order.id,
                    reason="Offer is no longer available",
                    payment_status=completed,
                    payment_intent_id=intent["id"],
                )
                return "refund_scheduled"
            return "confirmed"

        OrderService.update_payment_status(order.id, completed, "Payment completed")
        return "payment_completed"

    def _handle_payment_failed(self, order: Order, intent: Dict[str, Any]) -> str:
        error = intent.get("last_payment_error") or {}
        reason = f"Payment failed: {error.get('message')}" if error.get("message") else "Payment failed"
        detail = self._fail_order(order, reason)
        if detail == "cancelled":
            OrderEventPublisher.payment_failed(order, reason)
        return detail

    def _handle_canceled(self, order: Order, intent: Dict[str, Any]) -> str:
        return self._fail_order(order, "Payment was canceled")

    def _handle_requires_action(self, order: Order, intent: Dict[str, Any]) -> str:
        OrderEventPublisher.payment_action_required(order, intent["id"])
        return "action_required"

    # --- Helpers ---

    def _fail_order(self, order: Order, reason: str) -> str:
        failed = Order.PaymentStatus.FAILED

        if order.payment_status in (Order.PaymentStatus.COMPLETED, Order.PaymentStatus.REFUNDED):
            logger.info(f"Ignoring stale failure for order {order.order_number}: payment already {order.payment_status}")
            return "ignored_stale"

        if order.status in (Order.Status.PENDING, Order.Status.CONFIRMED):
            OrderService.cancel_order(order.id, reason=reason, payment_status=failed)
            return "cancelled"

        if order.status == Order.Status.CANCELLED:
            OrderService.update_payment_status(order.id, failed, reason)
            return "payment_failed"

        logger.warning(f"Payment failure for order {order.order_number} in status {order.status} ignored")
        return "ignored_status"

    def _schedule_refund(self, order: Order, payment_intent_id: str):
        from .tasks import refund_order_payment

        order_id = str(order.id)
        transaction.on_commit(lambda: refund_order_payment.delay(order_id, payment_intent_id))

    @staticmethod
    def _check_amount(order: Order, intent: Dict[str, Any]):
        received = intent.get("amount_received") or intent.get("amount")
        expected = to_minor(engine_settings.CURRENCY, order.total)
        if received is not None and received != expected:
            logger.error(
                f"Amount mismatch on order {order.order_number}: expected {expected}, gateway reported {received}"
            )

    @staticmethod
    def _resolve_order(intent: Dict[str, Any]) -> Optional[Order]:
        metadata = intent.get("metadata") or {}
        order_id = metadata.get("order_id")
        if order_id:
            try:
                order = Order.objects.filter(pk=order_id).first()
            except (DjangoValidationError, ValueError):
                order = None
            if order is not None:
                return order
        intent_id = intent.get("id")
        if intent_id:
            return Order.objects.filter(payment_intent_id=intent_id).first()
        return None
