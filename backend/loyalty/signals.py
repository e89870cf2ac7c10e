from django.dispatch import receiver
import logging

from orders.signals import order_delivered

from .tasks import award_order_loyalty_points

logger = logging.getLogger(__name__)


@receiver(order_delivered)
def handle_order_delivered(sender, order_id, **kwargs):
    """Queues the delivery-time loyalty award."""
    logger.info(f"Queueing loyalty award for delivered order {order_id}")
    award_order_loyalty_points.delay(order_id)
