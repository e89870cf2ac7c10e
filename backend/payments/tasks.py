from celery import shared_task
import logging

from core_backend.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

REFUND_BASE_DELAY = 30


@shared_task(bind=True, max_retries=6)
def refund_order_payment(self, order_id, payment_intent_id):
    """
    Refunds a captured payment for an order that could not be fulfilled.

    Gateway failures are retried with exponential backoff (30s, 60s,
    120s, ...). The refund request carries an idempotency key derived from
    the order, so a retry after a lost response cannot refund twice.

    Returns:
        dict: Status and the gateway refund id
    """
    from orders.models import Order
    from orders.services import OrderService

    from .gateway import StripeGateway

    try:
        logger.info(f"Refunding payment {payment_intent_id} for order {order_id}")
        refund = StripeGateway.from_settings().refund(
            payment_intent_id,
            reason="requested_by_customer",
            idempotency_key=f"order-{order_id}-refund",
        )
    except ExternalServiceError as exc:
        countdown = REFUND_BASE_DELAY * (2 ** self.request.retries)
        logger.error(
            f"Refund for order {order_id} failed (attempt {self.request.retries + 1}), "
            f"retrying in {countdown}s: {exc}"
        )
        raise self.retry(exc=exc, countdown=countdown)

    OrderService.update_payment_status(order_id, Order.PaymentStatus.REFUNDED, "Payment refunded")
    logger.info(f"Refund {refund.id} issued for order {order_id}")

    return {"status": "refunded", "order_id": str(order_id), "refund_id": refund.id}
