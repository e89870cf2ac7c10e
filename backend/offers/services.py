import logging
from decimal import Decimal
from typing import Optional

from django.db.models import F, Q
from django.utils import timezone

from core_backend.config import engine_settings

from .exceptions import (
    MinimumOrderNotMet,
    OfferAudienceMismatch,
    OfferExpired,
    OfferNotFound,
    UsageLimitReached,
)
from .models import Offer

logger = logging.getLogger(__name__)


class OfferValidator:
    """
    Eligibility checks and discount computation for promotional offers.

    Validation never touches used_count. Usage is claimed separately through
    claim_usage(), which the order service calls once when an order is
    confirmed.
    """

    @staticmethod
    def get_offer(offer_id) -> Offer:
        try:
            return Offer.objects.get(pk=offer_id)
        except (Offer.DoesNotExist, ValueError, TypeError):
            raise OfferNotFound(offer_id)

    @staticmethod
    def check_eligibility(offer: Offer, order_amount: Decimal, audience: str, now=None):
        """
        Raises the first failing eligibility rule, checked in a fixed order:
        window, audience, minimum order, usage.
        """
        now = now or timezone.now()

        if not offer.is_within_window(now):
            raise OfferExpired(
                f"Offer '{offer.title}' is not currently available",
                details={
                    "offer_id": str(offer.pk),
                    "valid_from": offer.valid_from.isoformat(),
                    "valid_until": offer.valid_until.isoformat(),
                    "is_active": offer.is_active,
                },
            )

        if offer.target_audience != Offer.Audience.ALL and offer.target_audience != audience:
            raise OfferAudienceMismatch(
                f"Offer '{offer.title}' is only available to {offer.get_target_audience_display().lower()}",
                details={"offer_id": str(offer.pk), "target_audience": offer.target_audience},
            )

        if offer.minimum_order_amount is not None and order_amount < offer.minimum_order_amount:
            raise MinimumOrderNotMet(offer.minimum_order_amount, order_amount)

        if not offer.has_remaining_usage:
            raise UsageLimitReached(
                f"Offer '{offer.title}' has reached its usage limit",
                details={"offer_id": str(offer.pk), "usage_limit": offer.usage_limit},
            )

    @staticmethod
    def discount_for(offer: Offer, order_amount: Decimal) -> Decimal:
        """
        Unrounded discount for an eligible offer. Free delivery yields zero
        here; the pricing calculator waives the delivery fee instead.
        """
        order_amount = Decimal(order_amount)

        if offer.discount_type == Offer.DiscountType.PERCENTAGE:
            discount = order_amount * offer.discount_value / Decimal("100")
        elif offer.discount_type == Offer.DiscountType.FIXED_AMOUNT:
            discount = Decimal(offer.discount_value)
        else:
            discount = Decimal("0")

        if offer.maximum_discount_amount is not None:
            discount = min(discount, offer.maximum_discount_amount)

        return max(min(discount, order_amount), Decimal("0"))

    @classmethod
    def validate(cls, offer_id, order_amount: Decimal, audience: str = Offer.Audience.ALL, now=None) -> Decimal:
        """
        Validates an offer against an order amount and returns the discount
        it would grant. Raises OfferNotFound, OfferExpired,
        OfferAudienceMismatch, MinimumOrderNotMet or UsageLimitReached.
        """
        offer = cls.get_offer(offer_id)
        cls.check_eligibility(offer, Decimal(order_amount), audience, now=now)
        return cls.discount_for(offer, order_amount)

    @staticmethod
    def claim_usage(offer_id) -> None:
        """
        Atomically takes one unit of the offer's usage budget.

        The guard and the increment run as a single UPDATE so concurrent
        claims against the last remaining unit cannot both succeed.
        """
        updated = (
            Offer.objects.filter(pk=offer_id)
            .filter(Q(usage_limit__isnull=True) | Q(used_count__lt=F("usage_limit")))
            .update(used_count=F("used_count") + 1, updated_at=timezone.now())
        )
        if updated == 0:
            if not Offer.objects.filter(pk=offer_id).exists():
                raise OfferNotFound(offer_id)
            logger.info(f"Usage claim rejected for offer {offer_id}: limit reached")
            raise UsageLimitReached(
                "Offer has reached its usage limit",
                details={"offer_id": str(offer_id)},
            )
        logger.info(f"Claimed one usage of offer {offer_id}")

    @staticmethod
    def release_usage(offer_id) -> bool:
        """Returns one unit of usage. Never drives used_count below zero."""
        released = Offer.objects.filter(pk=offer_id, used_count__gt=0).update(
            used_count=F("used_count") - 1, updated_at=timezone.now()
        )
        if released:
            logger.info(f"Released one usage of offer {offer_id}")
        else:
            logger.warning(f"Offer {offer_id} had no usage to release")
        return bool(released)

    @staticmethod
    def audience_for_customer(customer_id) -> str:
        """
        Segment used for audience matching: customers without orders are new,
        customers with enough delivered orders are loyal.
        """
        from orders.models import Order

        orders = Order.objects.filter(customer_id=customer_id)
        if not orders.exists():
            return Offer.Audience.NEW_CUSTOMERS

        delivered = orders.filter(status=Order.Status.DELIVERED).count()
        if delivered >= engine_settings.LOYAL_CUSTOMER_ORDER_COUNT:
            return Offer.Audience.LOYAL_CUSTOMERS
        return Offer.Audience.ALL

    @staticmethod
    def active_offers(audience: Optional[str] = None, now=None):
        """Offers a customer in the given segment could apply right now."""
        now = now or timezone.now()
        queryset = Offer.objects.filter(
            is_active=True, valid_from__lte=now, valid_until__gte=now
        ).filter(Q(usage_limit__isnull=True) | Q(used_count__lt=F("usage_limit")))
        if audience:
            queryset = queryset.filter(target_audience__in=[Offer.Audience.ALL, audience])
        return queryset.order_by("valid_until")
