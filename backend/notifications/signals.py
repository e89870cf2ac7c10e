from django.dispatch import receiver
import logging

from orders.signals import (
    order_created,
    order_status_changed,
    payment_action_required,
    payment_failed,
)

from . import tasks

logger = logging.getLogger(__name__)


@receiver(order_created)
def handle_order_created(sender, order_id, **kwargs):
    tasks.notify_order_created.delay(order_id)


@receiver(order_status_changed)
def handle_order_status_changed(sender, order_id, old_status, new_status, **kwargs):
    tasks.notify_order_status_changed.delay(order_id, old_status, new_status)


@receiver(payment_failed)
def handle_payment_failed(sender, order_id, reason, **kwargs):
    tasks.notify_payment_failed.delay(order_id, reason)


@receiver(payment_action_required)
def handle_payment_action_required(sender, order_id, **kwargs):
    tasks.notify_payment_action_required.delay(order_id)
