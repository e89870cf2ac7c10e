from rest_framework import serializers
from orders.models import OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    """Read-only view of a snapshotted order line."""

    menu_item_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "menu_item_id",
            "item_name",
            "quantity",
            "unit_price",
            "line_total",
            "special_instructions",
        ]
        read_only_fields = fields


class OrderLineInputSerializer(serializers.Serializer):
    """
    One requested line. Quantity is only checked for type here; positivity
    and menu availability are enforced by the pricing calculator so every
    caller gets the same InvalidLineItem error.
    """

    menu_item_id = serializers.CharField()
    quantity = serializers.IntegerField()
    special_instructions = serializers.CharField(required=False, allow_blank=True, default="")
