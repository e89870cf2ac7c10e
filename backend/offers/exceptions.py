"""
Offer eligibility exceptions.
"""
from core_backend.exceptions import NotFoundError, StateConflictError, ValidationError


class OfferNotFound(NotFoundError):
    """Offer does not exist."""

    code = "offer_not_found"

    def __init__(self, offer_id):
        super().__init__(f"Offer {offer_id} not found", details={"offer_id": str(offer_id)})


class OfferExpired(ValidationError):
    """Offer is inactive or outside its validity window."""

    code = "offer_expired"


class OfferAudienceMismatch(ValidationError):
    """Offer is not available to this customer segment."""

    code = "offer_audience_mismatch"


class MinimumOrderNotMet(ValidationError):
    """Order amount is below the offer minimum."""

    code = "minimum_order_not_met"

    def __init__(self, minimum, order_amount):
        super().__init__(
            f"Minimum order amount of {minimum} not met",
            details={"minimum_order_amount": str(minimum), "order_amount": str(order_amount)},
        )


class UsageLimitReached(StateConflictError):
    """Offer has been redeemed the maximum number of times."""

    code = "usage_limit_reached"
