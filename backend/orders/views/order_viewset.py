import logging

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.exceptions import PermissionDenied
from rest_framework.request import Request
from rest_framework.response import Response

from customers.services import CustomerService
from orders.filters import OrderFilter
from orders.models import Order
from orders.permissions import IsOrderOwnerOrStaff
from orders.serializers import OrderCreateSerializer, OrderSerializer
from orders.services import OrderService

from .status_actions import StatusActionsMixin

logger = logging.getLogger(__name__)


class OrderViewSet(
    StatusActionsMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Orders API.

    POST   /api/orders/                   create (customer-facing)
    GET    /api/orders/<id>/              retrieve
    GET    /api/orders/<id>/tracking/     audit trail
    POST   /api/orders/<id>/cancel/       cancel (owner or staff)
    POST   /api/orders/<id>/confirm/      staff only
    POST   /api/orders/<id>/advance/      staff only
    GET    /api/orders/                   staff only, filtered by OrderFilter
    """

    serializer_class = OrderSerializer
    queryset = Order.objects.select_related("customer", "delivery_address").prefetch_related("items")
    filter_backends = [DjangoFilterBackend]
    filterset_class = OrderFilter

    STAFF_ACTIONS = ("list", "confirm", "advance")

    def get_permissions(self):
        if self.action in self.STAFF_ACTIONS:
            return [permissions.IsAdminUser()]
        return [IsOrderOwnerOrStaff()]

    def get_object(self):
        order = OrderService.get_order(self.kwargs["pk"])
        self.check_object_permissions(self.request, order)
        return order

    def create(self, request: Request, *args, **kwargs) -> Response:
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if not request.user.is_staff and not CustomerService.owns(request.user, data["customer_id"]):
            raise PermissionDenied("You can only place orders for your own account.")

        idempotency_key = data.get("idempotency_key") or request.headers.get("Idempotency-Key")

        order = OrderService.create_order(
            customer_id=data["customer_id"],
            items=[dict(item) for item in data["items"]],
            delivery_address_id=data["delivery_address_id"],
            notes=data.get("notes"),
            offer_id=data.get("offer_id"),
            loyalty_points=data.get("loyalty_points") or 0,
            idempotency_key=idempotency_key or None,
        )
        return Response(self.get_serializer(order).data, status=status.HTTP_201_CREATED)
