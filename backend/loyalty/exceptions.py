from core_backend.exceptions import ValidationError


class InsufficientPoints(ValidationError):
    """Customer does not hold enough loyalty points."""

    code = "insufficient_points"

    def __init__(self, requested, available):
        super().__init__(
            f"Requested {requested} points but only {available} are available",
            details={"requested": requested, "available": available},
        )


class InvalidPointsAmount(ValidationError):
    """Point amounts must be non-negative whole numbers."""

    code = "invalid_points_amount"
