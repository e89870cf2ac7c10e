"""
Error taxonomy shared by every fulfillment app.

Each app raises subclasses of the four families below; the DRF exception
handler turns them into a consistent response body:

    {"error": "<code>", "message": "...", "details": {...}}

- ValidationError      -> 400, field-level details, not retryable as-is
- NotFoundError        -> 404
- StateConflictError   -> 409, safe to retry after re-reading state
- ExternalServiceError -> 502, gateway or provider failure
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class FulfillmentError(Exception):
    """Base exception for fulfillment engine errors."""

    code = "fulfillment_error"
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    retryable = False

    def __init__(self, message=None, details=None):
        self.message = message or self.__class__.__doc__ or self.code
        self.details = details or {}
        super().__init__(self.message)

    def as_dict(self):
        payload = {"error": self.code, "message": str(self.message)}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(FulfillmentError):
    """Request data failed validation."""

    code = "validation_error"
    http_status = status.HTTP_400_BAD_REQUEST


class NotFoundError(FulfillmentError):
    """Referenced record does not exist."""

    code = "not_found"
    http_status = status.HTTP_404_NOT_FOUND


class StateConflictError(FulfillmentError):
    """Operation conflicts with the current state of a record."""

    code = "state_conflict"
    http_status = status.HTTP_409_CONFLICT
    retryable = True


class ExternalServiceError(FulfillmentError):
    """An external provider failed to complete the request."""

    code = "external_service_error"
    http_status = status.HTTP_502_BAD_GATEWAY
    retryable = True


def fulfillment_exception_handler(exc, context):
    """
    DRF exception handler that renders FulfillmentError subclasses and falls
    back to the default handler for everything else.
    """
    if isinstance(exc, FulfillmentError):
        request = context.get("request")
        log = logger.warning if exc.http_status < 500 else logger.error
        log(
            f"{exc.__class__.__name__} on "
            f"{request.method if request else '?'} {request.path if request else '?'}: {exc.message}"
        )
        return Response(exc.as_dict(), status=exc.http_status)

    return exception_handler(exc, context)
