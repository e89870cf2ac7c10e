import logging

from django.db import transaction

from .. import signals
from ..models import Order

logger = logging.getLogger(__name__)


class OrderEventPublisher:
    """Centralized event publishing for order lifecycle events"""

    @staticmethod
    def _publish(signal, event_name: str, **payload):
        """
        Sends the signal once the current transaction commits. Outside a
        transaction on_commit runs the callback immediately.
        """

        def send():
            logger.info(f"Publishing {event_name} event for order {payload.get('order_id')}")
            for receiver, response in signal.send_robust(sender=Order, **payload):
                if isinstance(response, Exception):
                    logger.error(f"Receiver {receiver.__qualname__} failed for {event_name}: {response}")

        transaction.on_commit(send)

    @classmethod
    def order_created(cls, order: Order):
        cls._publish(signals.order_created, "order_created", order_id=str(order.id))

    @classmethod
    def order_status_changed(cls, order: Order, old_status: str, new_status: str):
        cls._publish(
            signals.order_status_changed,
            "order_status_changed",
            order_id=str(order.id),
            old_status=old_status,
            new_status=new_status,
        )
        if new_status == Order.Status.DELIVERED:
            cls._publish(signals.order_delivered, "order_delivered", order_id=str(order.id))

    @classmethod
    def payment_failed(cls, order: Order, reason: str):
        cls._publish(signals.payment_failed, "payment_failed", order_id=str(order.id), reason=reason)

    @classmethod
    def payment_action_required(cls, order: Order, payment_intent_id: str):
        cls._publish(
            signals.payment_action_required,
            "payment_action_required",
            order_id=str(order.id),
            payment_intent_id=payment_intent_id,
        )
