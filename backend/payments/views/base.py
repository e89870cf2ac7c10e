"""
Base classes for payment views.
"""

from rest_framework.views import APIView
import logging

logger = logging.getLogger(__name__)


class BasePaymentView(APIView):
    """
    Base class for all payment views with common functionality.
    """

    def handle_exception(self, exc):
        """
        Logs every payment view failure before the project exception handler
        renders it.
        """
        logger.error(f"Payment view error in {self.__class__.__name__}: {exc}")
        return super().handle_exception(exc)
