"""
Order-specific exceptions.
"""
from core_backend.exceptions import NotFoundError, StateConflictError, ValidationError


class OrderNotFound(NotFoundError):
    """Order does not exist."""

    code = "order_not_found"

    def __init__(self, order_id):
        super().__init__(f"Order {order_id} not found", details={"order_id": str(order_id)})


class InvalidLineItem(ValidationError):
    """A line item references a missing or unavailable menu item, or has a bad quantity."""

    code = "invalid_line_item"


class InvalidOrderRequest(ValidationError):
    """Order request is missing required data."""

    code = "invalid_order"


class InvalidTransition(StateConflictError):
    """Requested status change is not allowed from the current status."""

    code = "invalid_transition"
    retryable = False

    def __init__(self, current_status, requested_status):
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__(
            f"Cannot move order from '{current_status}' to '{requested_status}'",
            details={"current_status": current_status, "requested_status": requested_status},
        )


class StaleOrderStatus(StateConflictError):
    """Order status changed between read and write; re-read and retry."""

    code = "stale_order_status"


class OrderNotPayable(StateConflictError):
    """Order is no longer waiting for payment."""

    code = "order_not_payable"
    retryable = False
