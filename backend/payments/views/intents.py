from rest_framework import status
from rest_framework.response import Response
import logging

from orders.permissions import IsOrderOwnerOrStaff
from orders.services import OrderService

from .base import BasePaymentView
from ..services import PaymentIntentService

logger = logging.getLogger(__name__)


class CreateOrderPaymentIntentView(BasePaymentView):
    """
    Creates (or, for a repeated call, returns) the Stripe PaymentIntent for a
    pending order. The client confirms it with the returned client_secret.
    """

    permission_classes = [IsOrderOwnerOrStaff]

    def post(self, request, order_id, *args, **kwargs):
        order = OrderService.get_order(order_id)
        self.check_object_permissions(request, order)

        result = PaymentIntentService().create_payment_intent(order.id)
        return Response(result, status=status.HTTP_201_CREATED)
