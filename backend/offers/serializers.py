from rest_framework import serializers

from .models import Offer


class OfferSerializer(serializers.ModelSerializer):
    remaining_usage = serializers.SerializerMethodField()

    class Meta:
        model = Offer
        fields = [
            "id",
            "title",
            "description",
            "discount_type",
            "discount_value",
            "minimum_order_amount",
            "maximum_discount_amount",
            "usage_limit",
            "used_count",
            "remaining_usage",
            "valid_from",
            "valid_until",
            "is_active",
            "target_audience",
        ]
        read_only_fields = ["used_count"]

    def get_remaining_usage(self, obj):
        if obj.usage_limit is None:
            return None
        return max(obj.usage_limit - obj.used_count, 0)

    def validate(self, attrs):
        valid_from = attrs.get("valid_from", getattr(self.instance, "valid_from", None))
        valid_until = attrs.get("valid_until", getattr(self.instance, "valid_until", None))
        if valid_from and valid_until and valid_until < valid_from:
            raise serializers.ValidationError({"valid_until": "Offer cannot end before it starts."})
        return attrs


class OfferValidateSerializer(serializers.Serializer):
    """Input for checking an offer against a prospective order amount."""

    offer_id = serializers.IntegerField()
    order_amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    customer_id = serializers.UUIDField(required=False)
    audience = serializers.ChoiceField(choices=Offer.Audience.choices, required=False)
