"""
Customer-specific exceptions.
"""
from core_backend.exceptions import NotFoundError


class CustomerNotFoundError(NotFoundError):
    """Raised when customer is not found"""

    code = "customer_not_found"
