"""
Offers API Tests

1. Dry-run validation endpoint
2. Listing visible offers per audience
3. Staff-only management

Run with: pytest backend/offers/tests/test_offers_api.py -v
"""
import pytest
from datetime import timedelta
from decimal import Decimal

from django.utils import timezone

from offers.models import Offer


@pytest.mark.django_db
class TestValidateOfferAPI:
    def test_returns_discount_without_claiming(self, authenticated_client, make_offer):
        offer = make_offer(maximum_discount_amount=Decimal("40.00"), usage_limit=1)

        response = authenticated_client.post(
            "/api/offers/validate/",
            {"offer_id": offer.id, "order_amount": "400.00"},
            format="json",
        )

        assert response.status_code == 200
        assert response.data["discount"] == "40.00"
        assert response.data["audience"] == "all"
        offer.refresh_from_db()
        assert offer.used_count == 0

    def test_audience_derived_from_customer(self, authenticated_client, make_offer, customer):
        offer = make_offer(target_audience=Offer.Audience.NEW_CUSTOMERS)

        response = authenticated_client.post(
            "/api/offers/validate/",
            {"offer_id": offer.id, "order_amount": "200.00", "customer_id": str(customer.id)},
            format="json",
        )

        assert response.status_code == 200
        assert response.data["audience"] == "new_customers"
        assert response.data["discount"] == "20.00"

    def test_minimum_not_met(self, authenticated_client, make_offer):
        offer = make_offer(minimum_order_amount=Decimal("500.00"))

        response = authenticated_client.post(
            "/api/offers/validate/",
            {"offer_id": offer.id, "order_amount": "400.00"},
            format="json",
        )

        assert response.status_code == 400
        assert response.data["error"] == "minimum_order_not_met"

    def test_unknown_offer(self, authenticated_client):
        response = authenticated_client.post(
            "/api/offers/validate/",
            {"offer_id": 999999, "order_amount": "400.00"},
            format="json",
        )

        assert response.status_code == 404
        assert response.data["error"] == "offer_not_found"

    def test_exhausted_offer_is_conflict(self, authenticated_client, make_offer):
        offer = make_offer(usage_limit=1, used_count=1)

        response = authenticated_client.post(
            "/api/offers/validate/",
            {"offer_id": offer.id, "order_amount": "400.00"},
            format="json",
        )

        assert response.status_code == 409
        assert response.data["error"] == "usage_limit_reached"


@pytest.mark.django_db
class TestOfferListAPI:
    def test_customers_only_see_available_offers(self, authenticated_client, make_offer):
        live = make_offer(title="Live")
        make_offer(title="Paused", is_active=False)
        make_offer(title="Used up", usage_limit=2, used_count=2)
        make_offer(
            title="Finished",
            valid_from=timezone.now() - timedelta(days=10),
            valid_until=timezone.now() - timedelta(days=5),
        )

        response = authenticated_client.get("/api/offers/")

        assert response.status_code == 200
        assert [offer["id"] for offer in response.data] == [live.id]

    def test_audience_filter(self, authenticated_client, make_offer):
        everyone = make_offer(title="Everyone")
        make_offer(title="Regulars", target_audience=Offer.Audience.LOYAL_CUSTOMERS)

        response = authenticated_client.get("/api/offers/", {"audience": "new_customers"})

        assert [offer["id"] for offer in response.data] == [everyone.id]

    def test_staff_see_everything(self, staff_client, make_offer):
        make_offer(title="Live")
        make_offer(title="Paused", is_active=False)

        response = staff_client.get("/api/offers/")

        assert len(response.data) == 2

    def test_staff_create_offer(self, staff_client):
        now = timezone.now()
        response = staff_client.post(
            "/api/offers/",
            {
                "title": "Flat fifty",
                "discount_type": "fixed_amount",
                "discount_value": "50.00",
                "valid_from": now.isoformat(),
                "valid_until": (now + timedelta(days=7)).isoformat(),
                "target_audience": "all",
            },
            format="json",
        )

        assert response.status_code == 201
        assert response.data["remaining_usage"] is None

    def test_customer_cannot_create_offer(self, authenticated_client):
        response = authenticated_client.post("/api/offers/", {"title": "Free food"}, format="json")
        assert response.status_code == 403
