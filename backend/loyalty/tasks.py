from celery import shared_task
from django.db import DatabaseError
import logging

from .services import LoyaltyLedger

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def award_order_loyalty_points(self, order_id):
    """
    Credits loyalty points for a delivered order.

    Triggered by the order_delivered event once the delivery transition has
    committed. Safe to run more than once: the ledger awards at most once
    per order.

    Returns:
        dict: Status and the customer's new balance when points were awarded
    """
    try:
        logger.info(f"Awarding loyalty points for order {order_id}")
        new_balance = LoyaltyLedger.award_for_order(order_id)

        if new_balance is None:
            return {"status": "skipped", "order_id": str(order_id)}

        return {"status": "completed", "order_id": str(order_id), "balance": new_balance}

    except DatabaseError as exc:
        logger.error(f"Error awarding loyalty points for order {order_id}: {exc}")
        raise self.retry(exc=exc)
