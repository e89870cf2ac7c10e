"""
Payment-specific exceptions.
"""
from core_backend.exceptions import ExternalServiceError, ValidationError


class InvalidSignature(ValidationError):
    """Webhook signature could not be verified."""

    code = "invalid_signature"


class PaymentGatewayError(ExternalServiceError):
    """The payment gateway rejected or failed a request."""

    code = "payment_gateway_error"
