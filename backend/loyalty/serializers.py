from rest_framework import serializers


class LoyaltyBalanceSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField()
    balance = serializers.IntegerField()
    redeemable_points = serializers.IntegerField()
    redeemable_value = serializers.DecimalField(max_digits=10, decimal_places=2)
