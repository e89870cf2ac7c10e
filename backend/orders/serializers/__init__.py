"""
Orders serializers package.
"""

# Order item serializers
from .order_item_serializers import (
    OrderItemSerializer,
    OrderLineInputSerializer,
)

# Order serializers
from .order_serializers import (
    OrderCreateSerializer,
    OrderSerializer,
    OrderTrackingSerializer,
)

# Status serializers
from .status_serializers import AdvanceOrderStatusSerializer, CancelOrderSerializer

__all__ = [
    # Order items
    'OrderItemSerializer',
    'OrderLineInputSerializer',
    # Orders
    'OrderCreateSerializer',
    'OrderSerializer',
    'OrderTrackingSerializer',
    # Status
    'AdvanceOrderStatusSerializer',
    'CancelOrderSerializer',
]
