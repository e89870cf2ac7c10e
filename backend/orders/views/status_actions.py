import logging

from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response

from orders.serializers import (
    AdvanceOrderStatusSerializer,
    CancelOrderSerializer,
    OrderTrackingSerializer,
)
from orders.services import OrderService

logger = logging.getLogger(__name__)


class StatusActionsMixin:
    """
    Mixin for order status transition actions

    This mixin provides action methods for OrderViewSet. Domain errors
    (InvalidTransition, StaleOrderStatus, ...) are rendered by the project
    exception handler.
    """

    @action(detail=True, methods=["post"], url_path="confirm")
    def confirm(self, request: Request, pk=None) -> Response:
        """Staff confirmation, used for cash-on-delivery orders."""
        order = OrderService.confirm(pk)
        logger.info(f"Order {order.order_number} confirmed by {request.user}")
        return Response(self.get_serializer(order).data)

    @action(detail=True, methods=["post"], url_path="advance")
    def advance(self, request: Request, pk=None) -> Response:
        serializer = AdvanceOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.advance_status(
            pk,
            serializer.validated_data["status"],
            notes=serializer.validated_data.get("notes"),
        )
        return Response(self.get_serializer(order).data)

    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request: Request, pk=None) -> Response:
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = self.get_object()
        order = OrderService.cancel_order(order.id, reason=serializer.validated_data.get("reason"))
        return Response(self.get_serializer(order).data)

    @action(detail=True, methods=["get"], url_path="tracking")
    def tracking(self, request: Request, pk=None) -> Response:
        order = self.get_object()
        entries = OrderService.get_tracking(order.id)
        return Response(OrderTrackingSerializer(entries, many=True).data)
