from rest_framework import serializers

from orders.models import Order, OrderTracking

from .order_item_serializers import OrderItemSerializer, OrderLineInputSerializer


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    customer_id = serializers.UUIDField(read_only=True)
    delivery_address_id = serializers.UUIDField(read_only=True)
    offer_id = serializers.IntegerField(read_only=True, allow_null=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "status",
            "status_display",
            "payment_status",
            "items",
            "subtotal",
            "tax",
            "delivery_fee",
            "discount",
            "total",
            "offer_id",
            "loyalty_points_redeemed",
            "delivery_address_id",
            "customer_notes",
            "kitchen_notes",
            "cancellation_reason",
            "estimated_delivery_time",
            "actual_delivery_time",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderCreateSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField()
    items = OrderLineInputSerializer(many=True, allow_empty=False)
    delivery_address_id = serializers.UUIDField()
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    offer_id = serializers.IntegerField(required=False, allow_null=True)
    loyalty_points = serializers.IntegerField(required=False, min_value=0, default=0)
    idempotency_key = serializers.CharField(required=False, allow_blank=True, max_length=128)


class OrderTrackingSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderTracking
        fields = ["id", "status", "message", "metadata", "created_at"]
        read_only_fields = fields
