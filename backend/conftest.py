"""
Root conftest.py for all backend tests.

This file makes fixtures available to all test files across all apps.
"""
import hashlib
import hmac
import json
import time
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone


# ============================================================================
# AUTO-USE FIXTURES (Run automatically for every test)
# ============================================================================

@pytest.fixture(autouse=True)
def celery_eager():
    """
    Run Celery tasks inline so receivers that enqueue work are exercised.

    Tasks are still only enqueued from on_commit callbacks, which the default
    test transaction never fires. Use django_capture_on_commit_callbacks to
    run them.

    The app reads settings under the CELERY namespace, so the prefixed keys
    are the ones it honours.
    """
    from core_backend.celery import app

    previous = (app.conf.CELERY_TASK_ALWAYS_EAGER, app.conf.CELERY_TASK_EAGER_PROPAGATES)
    app.conf.CELERY_TASK_ALWAYS_EAGER = True
    app.conf.CELERY_TASK_EAGER_PROPAGATES = True
    yield
    app.conf.CELERY_TASK_ALWAYS_EAGER, app.conf.CELERY_TASK_EAGER_PROPAGATES = previous


@pytest.fixture(autouse=True)
def in_memory_channel_layer(settings):
    settings.CHANNEL_LAYERS = {"default": {"BACKEND": "channels.layers.InMemoryChannelLayer"}}


@pytest.fixture(autouse=True)
def locmem_email(settings):
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"


# ============================================================================
# DOMAIN FIXTURES
# ============================================================================

@pytest.fixture
def customer(db):
    from customers.models import Customer

    return Customer.objects.create_customer(
        email="asha@example.com",
        first_name="Asha",
        last_name="Rao",
        phone_number="+919800000001",
    )


@pytest.fixture
def other_customer(db):
    from customers.models import Customer

    return Customer.objects.create_customer(email="vikram@example.com", first_name="Vikram")


@pytest.fixture
def address(customer):
    from customers.models import CustomerAddress

    return CustomerAddress.objects.create(
        customer=customer,
        is_default=True,
        address_line1="12 MG Road",
        city="Bengaluru",
        state="Karnataka",
        postal_code="560001",
    )


@pytest.fixture
def menu_items(db):
    """
    Two dishes priced so that 2 x paneer + 1 x naan = 400.00 subtotal:
    tax 72.00, delivery 50.00, total 522.00.
    """
    from menu.models import MenuItem

    return {
        "paneer": MenuItem.objects.create(name="Paneer Tikka", price=Decimal("150.00")),
        "naan": MenuItem.objects.create(name="Butter Naan", price=Decimal("100.00")),
        "soldout": MenuItem.objects.create(name="Biryani", price=Decimal("250.00"), is_available=False),
    }


@pytest.fixture
def order_items(menu_items):
    return [
        {"menu_item_id": str(menu_items["paneer"].id), "quantity": 2},
        {"menu_item_id": str(menu_items["naan"].id), "quantity": 1, "special_instructions": "Extra butter"},
    ]


@pytest.fixture
def make_offer(db):
    """
    Factory for offers. Defaults to an active 10% offer for everyone, valid
    from yesterday until tomorrow.

    Usage:
        offer = make_offer(discount_value=Decimal("10"), maximum_discount_amount=Decimal("40.00"))
    """
    from offers.models import Offer

    def factory(**overrides):
        now = timezone.now()
        fields = {
            "title": "Ten percent off",
            "discount_type": Offer.DiscountType.PERCENTAGE,
            "discount_value": Decimal("10"),
            "valid_from": now - timedelta(days=1),
            "valid_until": now + timedelta(days=1),
            "is_active": True,
            "target_audience": Offer.Audience.ALL,
        }
        fields.update(overrides)
        return Offer.objects.create(**fields)

    return factory


@pytest.fixture
def make_order(customer, address):
    """
    Factory that writes an Order row directly, bypassing pricing and the
    state machine. For tests that need an order in a given state.

    Usage:
        order = make_order(status="delivered", total=Decimal("482.00"))
    """
    from orders.models import Order

    def factory(**overrides):
        fields = {
            "customer": customer,
            "delivery_address": address,
            "subtotal": Decimal("400.00"),
            "tax": Decimal("72.00"),
            "delivery_fee": Decimal("50.00"),
            "discount": Decimal("0.00"),
            "total": Decimal("522.00"),
        }
        fields.update(overrides)
        return Order.objects.create(**fields)

    return factory


@pytest.fixture
def pending_order(customer, address, order_items):
    """A real order placed through OrderService (400.00 subtotal, 522.00 total)."""
    from orders.services import OrderService

    return OrderService.create_order(
        customer_id=customer.id,
        items=order_items,
        delivery_address_id=address.id,
    )


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def api_client():
    """
    Provide DRF API client for API tests.

    Usage:
        def test_my_api(api_client):
            response = api_client.get('/api/health/')
            assert response.status_code == 200
    """
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def user(django_user_model):
    """Signed-in account that acts as the `customer` fixture (matched on email)."""
    return django_user_model.objects.create_user(
        username="asha", email="asha@example.com", password="pass12345"
    )


@pytest.fixture
def staff_user(django_user_model):
    return django_user_model.objects.create_user(
        username="kitchen-lead", password="pass12345", is_staff=True
    )


@pytest.fixture
def authenticated_client(api_client, user):
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture
def staff_client(staff_user):
    from rest_framework.test import APIClient

    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


# ============================================================================
# STRIPE FIXTURES
# ============================================================================

WEBHOOK_SECRET = "whsec_test_secret"


@pytest.fixture
def stripe_settings(settings):
    settings.STRIPE_SECRET_KEY = "sk_test_123"
    settings.STRIPE_WEBHOOK_SECRET = WEBHOOK_SECRET
    settings.STRIPE_WEBHOOK_TOLERANCE = 300
    return settings


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp=None) -> str:
    """Builds a Stripe-Signature header the way Stripe does (v1 scheme)."""
    timestamp = int(timestamp if timestamp is not None else time.time())
    signed = f"{timestamp}.{payload}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


@pytest.fixture
def stripe_event():
    """
    Factory for payment_intent events.

    Usage:
        payload, header = stripe_event("payment_intent.succeeded", order, event_id="evt_1")
    """
    from payments.money import to_minor

    def factory(event_type, order, event_id="evt_test_1", intent_id="pi_test_1", amount=None, **intent_fields):
        intent = {
            "id": intent_id,
            "object": "payment_intent",
            "amount": amount if amount is not None else to_minor("INR", order.total),
            "currency": "inr",
            "metadata": {"order_id": str(order.id), "order_number": order.order_number},
        }
        intent.update(intent_fields)
        payload = json.dumps(
            {
                "id": event_id,
                "object": "event",
                "type": event_type,
                "data": {"object": intent},
            }
        )
        return payload, sign_payload(payload)

    return factory


@pytest.fixture
def sign_webhook():
    return sign_payload
