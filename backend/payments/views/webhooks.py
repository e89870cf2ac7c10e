"""
Webhook views for payment providers.

Stripe calls these endpoints with signed events. A bad signature answers
400 without touching any order; a state conflict answers 409 so Stripe
redelivers later; everything else answers 200.
"""

from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from django.views.decorators.csrf import csrf_exempt
from django.utils.decorators import method_decorator
import logging

from .base import BasePaymentView
from ..services import PaymentReconciliationService

logger = logging.getLogger(__name__)


@method_decorator(csrf_exempt, name="dispatch")
class StripeWebhookView(BasePaymentView):
    """
    Stripe webhook view to handle asynchronous payment intent events.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    def get_reconciliation_service(self) -> PaymentReconciliationService:
        return PaymentReconciliationService()

    def post(self, request, *args, **kwargs):
        payload = request.body
        sig_header = request.META.get("HTTP_STRIPE_SIGNATURE")

        detail = self.get_reconciliation_service().handle_webhook(payload, sig_header)
        return Response({"received": True, "result": detail}, status=status.HTTP_200_OK)
