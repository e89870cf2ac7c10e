import django_filters

from .models import Order


class OrderFilter(django_filters.FilterSet):
    """
    Staff order board filters.

    ?status=pending&payment_status=completed&created_at__gte=2026-01-01
    """

    status = django_filters.MultipleChoiceFilter(choices=Order.Status.choices)
    payment_status = django_filters.ChoiceFilter(choices=Order.PaymentStatus.choices)
    customer = django_filters.UUIDFilter(field_name="customer_id")
    created_at__gte = django_filters.DateTimeFilter(field_name="created_at", lookup_expr="gte")
    created_at__lte = django_filters.DateTimeFilter(field_name="created_at", lookup_expr="lte")

    class Meta:
        model = Order
        fields = ["status", "payment_status", "customer"]
