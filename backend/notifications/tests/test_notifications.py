"""
Notifications Tests

1. Kitchen alerts go to the kitchen channel group
2. Customer emails render with order details
3. Order events reach the right recipients after commit
4. A failing notification never breaks the order flow

Run with: pytest backend/notifications/tests/test_notifications.py -v
"""
import pytest
from decimal import Decimal
from unittest.mock import MagicMock, patch

from django.core import mail

from notifications.services import (
    EmailService,
    KitchenNotificationService,
    OrderNotificationDispatcher,
    convert_payload_to_str,
)
from notifications.tasks import notify_order_status_changed
from orders.models import Order
from orders.services import OrderService


class TestPayloadConversion:
    def test_uuid_and_decimal_become_strings(self):
        import uuid

        value = uuid.uuid4()
        payload = convert_payload_to_str({"id": value, "items": [{"price": Decimal("1.50")}], "qty": 2})
        assert payload == {"id": str(value), "items": [{"price": "1.50"}], "qty": 2}


@pytest.mark.django_db
class TestKitchenNotifications:
    def test_group_send_to_kitchen_group(self, settings):
        settings.FULFILLMENT = {"KITCHEN_GROUP": "kitchen_main"}
        layer = MagicMock()

        async def group_send(group, message):
            layer.sent.append((group, message))

        layer.sent = []
        layer.group_send = group_send

        assert KitchenNotificationService(channel_layer=layer).notify("order_confirmed", {"total": Decimal("5.00")})
        assert layer.sent == [
            (
                "kitchen_main",
                {"type": "kitchen_notification", "message_type": "order_confirmed", "data": {"total": "5.00"}},
            )
        ]

    def test_confirmation_alerts_kitchen(self, pending_order):
        kitchen = MagicMock()
        OrderService.confirm(pending_order.id)

        OrderNotificationDispatcher(kitchen=kitchen, email=MagicMock()).status_changed(
            pending_order.id, "pending", "confirmed"
        )

        message_type, payload = kitchen.notify.call_args.args
        assert message_type == "order_confirmed"
        assert payload["order_number"] == pending_order.order_number
        assert [item["name"] for item in payload["items"]] == ["Paneer Tikka", "Butter Naan"]
        assert payload["items"][1]["special_instructions"] == "Extra butter"

    def test_progress_updates_do_not_alert_kitchen(self, pending_order):
        kitchen = MagicMock()
        OrderService.confirm(pending_order.id)
        OrderService.advance_status(pending_order.id, "preparing")

        OrderNotificationDispatcher(kitchen=kitchen, email=MagicMock()).status_changed(
            pending_order.id, "confirmed", "preparing"
        )

        kitchen.notify.assert_not_called()


@pytest.mark.django_db
class TestCustomerEmails:
    def test_order_update_email(self, pending_order):
        order = Order.objects.select_related("customer", "delivery_address").get(pk=pending_order.id)

        assert EmailService().send_order_update(order, "Order update", "Your order is on the way to you!")

        assert len(mail.outbox) == 1
        message = mail.outbox[0]
        assert message.to == ["asha@example.com"]
        assert message.subject == f"Order update - {order.order_number}"
        assert "Hi Asha Rao" in message.body
        assert "₹522.00" in message.body
        assert "12 MG Road, Bengaluru, Karnataka 560001" in message.body

    def test_cancellation_email_includes_reason(self, pending_order):
        OrderService.cancel_order(pending_order.id, reason="Restaurant closed early")

        OrderNotificationDispatcher(kitchen=MagicMock()).status_changed(pending_order.id, "pending", "cancelled")

        assert "Reason: Restaurant closed early" in mail.outbox[0].body
        assert "Estimated delivery" not in mail.outbox[0].body

    def test_payment_failed_email(self, pending_order):
        OrderNotificationDispatcher(kitchen=MagicMock()).payment_failed(pending_order.id, "Card declined")

        assert mail.outbox[0].subject.startswith("Payment failed")
        assert "Card declined" in mail.outbox[0].body


@pytest.mark.django_db
class TestEventDelivery:
    def test_confirm_sends_email_and_kitchen_alert(self, pending_order, django_capture_on_commit_callbacks):
        with patch("notifications.services.KitchenNotificationService.notify") as notify:
            with django_capture_on_commit_callbacks(execute=True):
                OrderService.confirm(pending_order.id)

        notify.assert_called_once()
        assert notify.call_args.args[0] == "order_confirmed"
        assert len(mail.outbox) == 1
        assert "confirmed" in mail.outbox[0].body

    def test_nothing_sent_before_commit(self, pending_order, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=False):
            OrderService.confirm(pending_order.id)
        assert mail.outbox == []

    def test_order_created_email(self, customer, address, order_items, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            OrderService.create_order(customer.id, order_items, address.id)

        assert mail.outbox[0].subject.startswith("Order received")


@pytest.mark.django_db
class TestBestEffort:
    def test_failing_email_does_not_break_transition(self, pending_order, django_capture_on_commit_callbacks):
        with patch("notifications.services.send_mail", side_effect=ConnectionRefusedError("smtp down")):
            with django_capture_on_commit_callbacks(execute=True):
                OrderService.confirm(pending_order.id)

        assert Order.objects.get(pk=pending_order.id).status == Order.Status.CONFIRMED

    def test_task_logs_and_swallows_errors(self, caplog):
        notify_order_status_changed("00000000-0000-0000-0000-000000000000", "pending", "confirmed")
        assert "Failed to send pending -> confirmed notifications" in caplog.text
