import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from core_backend.config import engine_settings
from payments.money import money

from .exceptions import InsufficientPoints, InvalidPointsAmount
from .models import LoyaltyBalance

logger = logging.getLogger(__name__)


@dataclass
class LoyaltyRedemption:
    """Outcome of turning points into a discount."""
    discount_granted: Decimal
    points_consumed: int
    remaining_balance: int


def _validate_points(points) -> int:
    if isinstance(points, bool) or not isinstance(points, int) or points < 0:
        raise InvalidPointsAmount(
            "Points must be a non-negative whole number",
            details={"points": str(points)},
        )
    return points


class LoyaltyLedger:
    """
    Per-customer point balances.

    Points are earned as floor(order total) when an order is delivered and
    spent in whole blocks (1000 points = 10.00 by default). Every mutation is
    a single conditional UPDATE, so concurrent redemptions cannot overdraw.
    """

    @staticmethod
    def quote(points: int) -> LoyaltyRedemption:
        """What redeeming `points` would grant, without touching any balance."""
        points = _validate_points(points)
        per_block = engine_settings.LOYALTY_POINTS_PER_BLOCK
        blocks = points // per_block
        return LoyaltyRedemption(
            discount_granted=money(engine_settings.LOYALTY_BLOCK_VALUE * blocks),
            points_consumed=blocks * per_block,
            remaining_balance=points - blocks * per_block,
        )

    @staticmethod
    def balance(customer_id) -> int:
        return (
            LoyaltyBalance.objects.filter(customer_id=customer_id)
            .values_list("balance", flat=True)
            .first()
            or 0
        )

    @classmethod
    def _credit(cls, customer_id, points: int) -> int:
        LoyaltyBalance.objects.get_or_create(customer_id=customer_id)
        if points:
            LoyaltyBalance.objects.filter(customer_id=customer_id).update(
                balance=F("balance") + points, updated_at=timezone.now()
            )
        return cls.balance(customer_id)

    @classmethod
    @transaction.atomic
    def award(cls, customer_id, amount) -> int:
        """
        Credits floor(amount) points and returns the new balance.
        """
        amount = Decimal(amount)
        if amount < 0:
            raise InvalidPointsAmount(
                "Cannot award points for a negative amount",
                details={"amount": str(amount)},
            )
        points = math.floor(amount)
        new_balance = cls._credit(customer_id, points)
        logger.info(f"Awarded {points} loyalty points to customer {customer_id} (balance {new_balance})")
        return new_balance

    @classmethod
    @transaction.atomic
    def restore(cls, customer_id, points: int) -> int:
        """Gives back points debited for an order that was later cancelled."""
        points = _validate_points(points)
        new_balance = cls._credit(customer_id, points)
        logger.info(f"Restored {points} loyalty points to customer {customer_id} (balance {new_balance})")
        return new_balance

    @classmethod
    @transaction.atomic
    def redeem(cls, customer_id, points: int) -> LoyaltyRedemption:
        """
        Debits the largest whole number of blocks contained in `points`.

        Raises InsufficientPoints when the customer holds fewer than `points`.
        Points below one block are left untouched and grant nothing.
        """
        quote = cls.quote(points)
        if points == 0:
            return LoyaltyRedemption(quote.discount_granted, 0, cls.balance(customer_id))

        updated = LoyaltyBalance.objects.filter(
            customer_id=customer_id, balance__gte=points
        ).update(
            balance=F("balance") - quote.points_consumed, updated_at=timezone.now()
        )
        if not updated:
            raise InsufficientPoints(points, cls.balance(customer_id))

        remaining = cls.balance(customer_id)
        logger.info(
            f"Customer {customer_id} redeemed {quote.points_consumed} points "
            f"for {quote.discount_granted} (balance {remaining})"
        )
        return LoyaltyRedemption(
            discount_granted=quote.discount_granted,
            points_consumed=quote.points_consumed,
            remaining_balance=remaining,
        )

    @classmethod
    @transaction.atomic
    def award_for_order(cls, order_id) -> Optional[int]:
        """
        Credits the points earned by a delivered order, at most once.

        The order's loyalty_points_awarded flag is flipped with a guarded
        UPDATE in the same transaction as the credit; a second call (a
        replayed task or webhook) finds the flag already set and does nothing.
        """
        from orders.models import Order

        claimed = Order.objects.filter(
            pk=order_id,
            status=Order.Status.DELIVERED,
            loyalty_points_awarded=False,
        ).update(loyalty_points_awarded=True, updated_at=timezone.now())

        if not claimed:
            logger.info(f"Loyalty award skipped for order {order_id}: not delivered or already awarded")
            return None

        customer_id, total = Order.objects.values_list("customer_id", "total").get(pk=order_id)
        return cls.award(customer_id, total)
