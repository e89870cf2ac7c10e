"""
Order lifecycle events.

Published by OrderEventPublisher after the transaction that caused them has
committed. Receivers live in the apps that react (loyalty, notifications)
and only enqueue Celery tasks, so nothing here can block or roll back an
order transition.

Every signal is sent with sender=Order and these keyword arguments:

- order_created:            order_id
- order_status_changed:     order_id, old_status, new_status
- payment_failed:           order_id, reason
- payment_action_required:  order_id, payment_intent_id
- order_delivered:          order_id
"""
from django.dispatch import Signal

order_created = Signal()
order_status_changed = Signal()
payment_failed = Signal()
payment_action_required = Signal()
order_delivered = Signal()
