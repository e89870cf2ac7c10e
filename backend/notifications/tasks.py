"""
Best-effort notification tasks.

These run at most once: no retries, no stored results. A failure is logged
and dropped; it never reaches the order transition that triggered it.
"""
from celery import shared_task
import logging

from .services import OrderNotificationDispatcher

logger = logging.getLogger(__name__)


@shared_task(ignore_result=True)
def notify_order_created(order_id):
    try:
        OrderNotificationDispatcher().order_created(order_id)
    except Exception as e:
        logger.error(f"Failed to send order_created notifications for order {order_id}: {e}")


@shared_task(ignore_result=True)
def notify_order_status_changed(order_id, old_status, new_status):
    try:
        OrderNotificationDispatcher().status_changed(order_id, old_status, new_status)
    except Exception as e:
        logger.error(
            f"Failed to send {old_status} -> {new_status} notifications for order {order_id}: {e}"
        )


@shared_task(ignore_result=True)
def notify_payment_failed(order_id, reason):
    try:
        OrderNotificationDispatcher().payment_failed(order_id, reason)
    except Exception as e:
        logger.error(f"Failed to send payment_failed notification for order {order_id}: {e}")


@shared_task(ignore_result=True)
def notify_payment_action_required(order_id):
    try:
        OrderNotificationDispatcher().payment_action_required(order_id)
    except Exception as e:
        logger.error(f"Failed to send payment_action_required notification for order {order_id}: {e}")
