"""
Orders API Integration Tests

1. Create order over HTTP, including the Idempotency-Key header
2. Error bodies follow the {"error", "message", "details"} shape
3. Staff-only transitions and customer cancellation
4. Audit trail endpoint

Run with: pytest backend/orders/tests/test_orders_api.py -v
"""
import pytest

from orders.models import Order
from orders.services import OrderService


@pytest.fixture
def create_payload(customer, address, order_items):
    return {
        "customer_id": str(customer.id),
        "delivery_address_id": str(address.id),
        "items": order_items,
        "notes": "Ring the bell twice",
    }


@pytest.mark.django_db
class TestCreateOrderAPI:
    def test_create_order(self, authenticated_client, create_payload):
        response = authenticated_client.post("/api/orders/", create_payload, format="json")

        assert response.status_code == 201
        assert response.data["status"] == "pending"
        assert response.data["total"] == "522.00"
        assert response.data["customer_notes"] == "Ring the bell twice"
        assert len(response.data["items"]) == 2

    def test_idempotency_header_replays(self, authenticated_client, create_payload):
        first = authenticated_client.post(
            "/api/orders/", create_payload, format="json", HTTP_IDEMPOTENCY_KEY="cart-42"
        )
        second = authenticated_client.post(
            "/api/orders/", create_payload, format="json", HTTP_IDEMPOTENCY_KEY="cart-42"
        )

        assert first.data["id"] == second.data["id"]
        assert Order.objects.count() == 1

    def test_zero_quantity_rejected(self, authenticated_client, create_payload):
        create_payload["items"][0]["quantity"] = 0

        response = authenticated_client.post("/api/orders/", create_payload, format="json")

        assert response.status_code == 400
        assert response.data["error"] == "invalid_line_item"
        assert response.data["details"]["index"] == 0

    def test_unavailable_item_rejected(self, authenticated_client, create_payload, menu_items):
        create_payload["items"] = [{"menu_item_id": str(menu_items["soldout"].id), "quantity": 1}]

        response = authenticated_client.post("/api/orders/", create_payload, format="json")

        assert response.status_code == 400
        assert response.data["error"] == "invalid_line_item"

    def test_expired_offer_rejected(self, authenticated_client, create_payload, make_offer):
        offer = make_offer(is_active=False)
        create_payload["offer_id"] = offer.id

        response = authenticated_client.post("/api/orders/", create_payload, format="json")

        assert response.status_code == 400
        assert response.data["error"] == "offer_expired"
        assert Order.objects.count() == 0

    def test_requires_authentication(self, api_client, create_payload):
        response = api_client.post("/api/orders/", create_payload, format="json")
        assert response.status_code == 403


@pytest.mark.django_db
class TestStatusAPI:
    def test_staff_can_advance(self, staff_client, pending_order):
        OrderService.confirm(pending_order.id)

        response = staff_client.post(
            f"/api/orders/{pending_order.id}/advance/", {"status": "preparing"}, format="json"
        )

        assert response.status_code == 200
        assert response.data["status"] == "preparing"

    def test_customer_cannot_advance(self, authenticated_client, pending_order):
        response = authenticated_client.post(
            f"/api/orders/{pending_order.id}/advance/", {"status": "confirmed"}, format="json"
        )
        assert response.status_code == 403

    def test_invalid_transition_is_conflict(self, staff_client, pending_order):
        response = staff_client.post(
            f"/api/orders/{pending_order.id}/advance/", {"status": "delivered"}, format="json"
        )

        assert response.status_code == 409
        assert response.data["error"] == "invalid_transition"
        assert response.data["details"] == {"current_status": "pending", "requested_status": "delivered"}

    def test_staff_confirm(self, staff_client, pending_order):
        response = staff_client.post(f"/api/orders/{pending_order.id}/confirm/")
        assert response.status_code == 200
        assert response.data["status"] == "confirmed"

    def test_customer_cancel(self, authenticated_client, pending_order):
        response = authenticated_client.post(
            f"/api/orders/{pending_order.id}/cancel/", {"reason": "Ordered twice"}, format="json"
        )

        assert response.status_code == 200
        assert response.data["status"] == "cancelled"
        assert response.data["cancellation_reason"] == "Ordered twice"

    def test_unknown_order_is_404(self, authenticated_client):
        response = authenticated_client.get("/api/orders/00000000-0000-0000-0000-000000000000/")
        assert response.status_code == 404
        assert response.data["error"] == "order_not_found"

    def test_tracking(self, authenticated_client, pending_order):
        OrderService.confirm(pending_order.id)

        response = authenticated_client.get(f"/api/orders/{pending_order.id}/tracking/")

        assert response.status_code == 200
        assert [entry["status"] for entry in response.data] == ["pending", "confirmed"]

    def test_staff_list_filters_by_status(self, staff_client, customer, address, order_items):
        kept = OrderService.create_order(customer.id, order_items, address.id)
        cancelled = OrderService.create_order(customer.id, order_items, address.id)
        OrderService.cancel_order(cancelled.id)

        response = staff_client.get("/api/orders/", {"status": "pending"})

        assert response.status_code == 200
        assert [order["id"] for order in response.data] == [str(kept.id)]

    def test_staff_list_filters_by_payment_status(self, staff_client, make_order):
        paid = make_order(payment_status=Order.PaymentStatus.COMPLETED)
        make_order()

        response = staff_client.get("/api/orders/", {"payment_status": "completed"})

        assert response.status_code == 200
        assert [order["id"] for order in response.data] == [str(paid.id)]

    def test_customer_cannot_list(self, authenticated_client):
        response = authenticated_client.get("/api/orders/")
        assert response.status_code == 403


@pytest.mark.django_db
class TestOrderOwnership:
    @pytest.fixture
    def foreign_order(self, other_customer, order_items):
        from customers.models import CustomerAddress

        address = CustomerAddress.objects.create(
            customer=other_customer,
            address_line1="7 Park Street",
            city="Kolkata",
            state="West Bengal",
            postal_code="700016",
        )
        return OrderService.create_order(other_customer.id, order_items, address.id)

    def test_cannot_order_for_another_customer(self, authenticated_client, other_customer, order_items):
        response = authenticated_client.post(
            "/api/orders/",
            {
                "customer_id": str(other_customer.id),
                "delivery_address_id": "00000000-0000-0000-0000-000000000000",
                "items": order_items,
                "loyalty_points": 1000,
            },
            format="json",
        )

        assert response.status_code == 403
        assert Order.objects.count() == 0

    def test_cannot_cancel_another_customers_order(self, authenticated_client, foreign_order):
        response = authenticated_client.post(f"/api/orders/{foreign_order.id}/cancel/", {}, format="json")

        assert response.status_code == 403
        foreign_order.refresh_from_db()
        assert foreign_order.status == Order.Status.PENDING

    def test_cannot_read_another_customers_order(self, authenticated_client, foreign_order):
        assert authenticated_client.get(f"/api/orders/{foreign_order.id}/").status_code == 403
        assert authenticated_client.get(f"/api/orders/{foreign_order.id}/tracking/").status_code == 403

    def test_user_without_customer_record_is_refused(self, api_client, django_user_model, pending_order):
        stranger = django_user_model.objects.create_user(username="stranger", email="stranger@example.com")
        api_client.force_authenticate(user=stranger)

        response = api_client.get(f"/api/orders/{pending_order.id}/")

        assert response.status_code == 403

    def test_staff_can_cancel_any_order(self, staff_client, foreign_order):
        response = staff_client.post(
            f"/api/orders/{foreign_order.id}/cancel/", {"reason": "Kitchen closed"}, format="json"
        )

        assert response.status_code == 200
        assert response.data["status"] == "cancelled"
