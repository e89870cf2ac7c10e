"""
Offer Validator Tests

Covers eligibility checks and discount computation for promotional offers:
1. Failure order (not found, expired, audience, minimum, usage)
2. Percentage / fixed / free-delivery computation and clamping
3. Atomic usage claim and release
4. Audience segmentation from order history

Run with: pytest backend/offers/tests/test_offer_validator.py -v
"""
import pytest
from datetime import timedelta
from decimal import Decimal

from django.utils import timezone

from offers.exceptions import (
    MinimumOrderNotMet,
    OfferAudienceMismatch,
    OfferExpired,
    OfferNotFound,
    UsageLimitReached,
)
from offers.models import Offer
from offers.services import OfferValidator


@pytest.mark.django_db
class TestOfferValidation:
    """Eligibility rules are checked in a fixed order."""

    def test_missing_offer_raises_not_found(self):
        with pytest.raises(OfferNotFound):
            OfferValidator.validate(999999, Decimal("100.00"), "all")

    def test_inactive_offer_is_expired(self, make_offer):
        offer = make_offer(is_active=False)
        with pytest.raises(OfferExpired):
            OfferValidator.validate(offer.id, Decimal("100.00"), "all")

    def test_offer_before_window_is_expired(self, make_offer):
        now = timezone.now()
        offer = make_offer(valid_from=now + timedelta(days=1), valid_until=now + timedelta(days=2))
        with pytest.raises(OfferExpired):
            OfferValidator.validate(offer.id, Decimal("100.00"), "all")

    def test_offer_after_window_is_expired(self, make_offer):
        now = timezone.now()
        offer = make_offer(valid_from=now - timedelta(days=2), valid_until=now - timedelta(days=1))
        with pytest.raises(OfferExpired):
            OfferValidator.validate(offer.id, Decimal("100.00"), "all")

    def test_window_bounds_are_inclusive(self, make_offer):
        now = timezone.now()
        offer = make_offer(valid_from=now, valid_until=now + timedelta(hours=1))
        discount = OfferValidator.validate(offer.id, Decimal("100.00"), "all", now=now)
        assert discount == Decimal("10")

    def test_audience_mismatch(self, make_offer):
        offer = make_offer(target_audience=Offer.Audience.LOYAL_CUSTOMERS)
        with pytest.raises(OfferAudienceMismatch):
            OfferValidator.validate(offer.id, Decimal("100.00"), Offer.Audience.NEW_CUSTOMERS)

    def test_audience_all_matches_any_segment(self, make_offer):
        offer = make_offer(target_audience=Offer.Audience.ALL)
        discount = OfferValidator.validate(offer.id, Decimal("100.00"), Offer.Audience.LOYAL_CUSTOMERS)
        assert discount == Decimal("10")

    def test_minimum_order_not_met(self, make_offer):
        offer = make_offer(minimum_order_amount=Decimal("300.00"))
        with pytest.raises(MinimumOrderNotMet) as exc_info:
            OfferValidator.validate(offer.id, Decimal("299.99"), "all")
        assert exc_info.value.details["minimum_order_amount"] == "300.00"

    def test_usage_limit_reached(self, make_offer):
        offer = make_offer(usage_limit=3, used_count=3)
        with pytest.raises(UsageLimitReached):
            OfferValidator.validate(offer.id, Decimal("100.00"), "all")

    def test_expiry_checked_before_minimum(self, make_offer):
        """An expired offer reports expiry even when the minimum is also unmet."""
        offer = make_offer(is_active=False, minimum_order_amount=Decimal("1000.00"))
        with pytest.raises(OfferExpired):
            OfferValidator.validate(offer.id, Decimal("10.00"), "all")

    def test_validate_does_not_touch_used_count(self, make_offer):
        offer = make_offer(usage_limit=5)
        OfferValidator.validate(offer.id, Decimal("100.00"), "all")
        offer.refresh_from_db()
        assert offer.used_count == 0


@pytest.mark.django_db
class TestDiscountComputation:
    """Discount amount per offer type, with both clamps applied."""

    def test_percentage_capped_by_maximum(self, make_offer):
        offer = make_offer(discount_value=Decimal("10"), maximum_discount_amount=Decimal("40.00"))
        assert OfferValidator.validate(offer.id, Decimal("522.00"), "all") == Decimal("40.00")

    def test_percentage_below_cap(self, make_offer):
        offer = make_offer(discount_value=Decimal("10"), maximum_discount_amount=Decimal("40.00"))
        assert OfferValidator.validate(offer.id, Decimal("250.00"), "all") == Decimal("25")

    def test_fixed_amount_clamped_to_order_amount(self, make_offer):
        offer = make_offer(discount_type=Offer.DiscountType.FIXED_AMOUNT, discount_value=Decimal("150.00"))
        assert OfferValidator.validate(offer.id, Decimal("120.00"), "all") == Decimal("120.00")

    def test_fixed_amount(self, make_offer):
        offer = make_offer(discount_type=Offer.DiscountType.FIXED_AMOUNT, discount_value=Decimal("75.00"))
        assert OfferValidator.validate(offer.id, Decimal("400.00"), "all") == Decimal("75.00")

    def test_free_delivery_yields_zero_discount(self, make_offer):
        offer = make_offer(discount_type=Offer.DiscountType.FREE_DELIVERY, discount_value=Decimal("0"))
        assert OfferValidator.validate(offer.id, Decimal("400.00"), "all") == Decimal("0")


@pytest.mark.django_db
class TestUsageClaims:
    """used_count only moves through the guarded UPDATE."""

    def test_claim_increments(self, make_offer):
        offer = make_offer(usage_limit=2)
        OfferValidator.claim_usage(offer.id)
        offer.refresh_from_db()
        assert offer.used_count == 1

    def test_claim_on_exhausted_offer_fails(self, make_offer):
        offer = make_offer(usage_limit=1)
        OfferValidator.claim_usage(offer.id)
        with pytest.raises(UsageLimitReached):
            OfferValidator.claim_usage(offer.id)
        offer.refresh_from_db()
        assert offer.used_count == 1

    def test_claim_with_stale_read_cannot_overshoot(self, make_offer):
        """
        Two callers that both read the offer before either claims see a free
        slot, but only one claim succeeds.
        """
        offer = make_offer(usage_limit=1)
        first_view = Offer.objects.get(pk=offer.id)
        second_view = Offer.objects.get(pk=offer.id)
        assert first_view.has_remaining_usage and second_view.has_remaining_usage

        OfferValidator.claim_usage(first_view.id)
        with pytest.raises(UsageLimitReached):
            OfferValidator.claim_usage(second_view.id)

        offer.refresh_from_db()
        assert offer.used_count == 1

    def test_unlimited_offer_always_claims(self, make_offer):
        offer = make_offer(usage_limit=None)
        for _ in range(3):
            OfferValidator.claim_usage(offer.id)
        offer.refresh_from_db()
        assert offer.used_count == 3

    def test_claim_missing_offer(self):
        with pytest.raises(OfferNotFound):
            OfferValidator.claim_usage(424242)

    def test_release_never_goes_negative(self, make_offer):
        offer = make_offer(usage_limit=1)
        assert OfferValidator.release_usage(offer.id) is False
        OfferValidator.claim_usage(offer.id)
        assert OfferValidator.release_usage(offer.id) is True
        offer.refresh_from_db()
        assert offer.used_count == 0


@pytest.mark.django_db
class TestAudienceSegments:
    def test_customer_without_orders_is_new(self, customer):
        assert OfferValidator.audience_for_customer(customer.id) == Offer.Audience.NEW_CUSTOMERS

    def test_customer_with_delivered_orders_is_loyal(self, customer, make_order, settings):
        settings.FULFILLMENT = {"LOYAL_CUSTOMER_ORDER_COUNT": 2}
        make_order(status="delivered")
        make_order(status="delivered")
        assert OfferValidator.audience_for_customer(customer.id) == Offer.Audience.LOYAL_CUSTOMERS

    def test_returning_customer_is_general_audience(self, customer, make_order):
        make_order(status="pending")
        assert OfferValidator.audience_for_customer(customer.id) == Offer.Audience.ALL

    def test_active_offers_excludes_exhausted_and_other_segments(self, make_offer):
        available = make_offer(title="Everyone")
        make_offer(title="Used up", usage_limit=1, used_count=1)
        make_offer(title="Loyal only", target_audience=Offer.Audience.LOYAL_CUSTOMERS)
        new_only = make_offer(title="Welcome", target_audience=Offer.Audience.NEW_CUSTOMERS)

        titles = set(
            OfferValidator.active_offers(Offer.Audience.NEW_CUSTOMERS).values_list("title", flat=True)
        )
        assert titles == {available.title, new_only.title}
