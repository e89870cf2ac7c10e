from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string
from channels.layers import get_channel_layer
from asgiref.sync import async_to_sync
from decimal import Decimal
from typing import Any, Dict
from uuid import UUID
import logging

from core_backend.config import engine_settings
from payments.money import format_money

logger = logging.getLogger(__name__)


def convert_payload_to_str(data):
    """
    Recursively converts UUID and Decimal objects in a data structure to strings.
    This prepares the payload for default serialization by the channels library.
    """
    if isinstance(data, dict):
        return {k: convert_payload_to_str(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [convert_payload_to_str(elem) for elem in data]
    elif isinstance(data, (UUID, Decimal)):
        return str(data)
    return data


class KitchenNotificationService:
    """Pushes order alerts to kitchen screens over the channel layer."""

    def __init__(self, channel_layer=None):
        self.channel_layer = channel_layer or get_channel_layer()

    def notify(self, message_type: str, data: Dict[str, Any]) -> bool:
        if not self.channel_layer:
            logger.warning("No channel layer available for kitchen notifications")
            return False

        group_name = engine_settings.KITCHEN_GROUP
        logger.debug(f"Sending {message_type} to kitchen group {group_name}")
        async_to_sync(self.channel_layer.group_send)(
            group_name,
            {
                "type": "kitchen_notification",
                "message_type": message_type,
                "data": convert_payload_to_str(data),
            },
        )
        return True


class EmailService:
    """Customer-facing order emails rendered from plain-text templates."""

    TEMPLATE = "emails/order_update.txt"

    def __init__(self):
        from_email_address = getattr(settings, "DEFAULT_FROM_EMAIL", "orders@example.com")
        self.default_from_email = from_email_address

    def send_email(self, recipient_list, subject, template_name, context):
        """
        Sends an email rendered from a Django template.

        Args:
            recipient_list (list): A list of recipient email addresses.
            subject (str): The subject of the email.
            template_name (str): Template path, e.g. 'emails/order_update.txt'.
            context (dict): Data to render in the template.
        """
        message = render_to_string(template_name, context)
        send_mail(
            subject,
            message,
            self.default_from_email,
            recipient_list,
            fail_silently=False,
        )

    def send_order_update(self, order, headline: str, body: str) -> bool:
        recipient = order.customer.email
        if not recipient:
            logger.warning(f"No email address found for order {order.order_number}")
            return False

        currency = engine_settings.CURRENCY
        context = {
            "customer_name": order.customer.get_full_name(),
            "order_number": order.order_number,
            "headline": headline,
            "body": body,
            "status": order.get_status_display(),
            "total": format_money(currency, order.total),
            "estimated_delivery_time": order.estimated_delivery_time,
            "show_eta": not order.is_terminal and order.estimated_delivery_time is not None,
            "address": order.delivery_address.one_line(),
        }
        self.send_email([recipient], f"{headline} - {order.order_number}", self.TEMPLATE, context)
        logger.info(f"Sent '{headline}' email for order {order.order_number}")
        return True


class OrderNotificationDispatcher:
    """
    Decides who hears about each order event and how.

    Kitchen screens get new confirmed work and cancellations; customers get
    an email for every status change and for payment problems.
    """

    CUSTOMER_MESSAGES = {
        "pending": "We have received your order and are waiting for payment confirmation.",
        "confirmed": "Your order has been confirmed and we are preparing it!",
        "preparing": "Your delicious meal is being prepared by our kitchen team!",
        "ready": "Your order is ready and will be out for delivery soon!",
        "out_for_delivery": "Your order is on the way to you!",
        "delivered": "Your order has been delivered. Enjoy your meal!",
        "cancelled": "Your order has been cancelled.",
    }

    KITCHEN_STATUSES = ("confirmed", "cancelled")

    def __init__(self, kitchen=None, email=None):
        self.kitchen = kitchen or KitchenNotificationService()
        self.email = email or EmailService()

    @staticmethod
    def _load(order_id):
        from orders.models import Order

        return (
            Order.objects.select_related("customer", "delivery_address")
            .prefetch_related("items")
            .get(pk=order_id)
        )

    @staticmethod
    def _kitchen_payload(order) -> Dict[str, Any]:
        return {
            "order_id": order.id,
            "order_number": order.order_number,
            "status": order.status,
            "items": [
                {
                    "name": item.item_name,
                    "quantity": item.quantity,
                    "special_instructions": item.special_instructions,
                }
                for item in order.items.all()
            ],
            "customer_notes": order.customer_notes,
            "estimated_delivery_time": order.estimated_delivery_time.isoformat()
            if order.estimated_delivery_time
            else None,
        }

    def order_created(self, order_id):
        order = self._load(order_id)
        self.email.send_order_update(order, "Order received", self.CUSTOMER_MESSAGES["pending"])

    def status_changed(self, order_id, old_status, new_status):
        order = self._load(order_id)

        if new_status in self.KITCHEN_STATUSES:
            payload = self._kitchen_payload(order)
            payload["previous_status"] = old_status
            if new_status == "cancelled":
                payload["reason"] = order.cancellation_reason
            self.kitchen.notify(f"order_{new_status}", payload)

        body = self.CUSTOMER_MESSAGES.get(new_status, f"Your order status has been updated to {new_status}")
        if new_status == "cancelled" and order.cancellation_reason:
            body = f"{body} Reason: {order.cancellation_reason}"
        self.email.send_order_update(order, "Order update", body)

    def payment_failed(self, order_id, reason):
        order = self._load(order_id)
        self.email.send_order_update(
            order,
            "Payment failed",
            f"We could not process your payment ({reason}). Your order has not been placed.",
        )

    def payment_action_required(self, order_id):
        order = self._load(order_id)
        self.email.send_order_update(
            order,
            "Action needed to complete payment",
            "Your bank needs you to confirm this payment before we can start on your order.",
        )
