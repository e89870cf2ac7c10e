from rest_framework.response import Response
from rest_framework.views import APIView

from customers.permissions import IsCustomerOrStaff
from customers.services import CustomerService

from .serializers import LoyaltyBalanceSerializer
from .services import LoyaltyLedger


class LoyaltyBalanceView(APIView):
    """Current balance and what it is worth if redeemed in full."""

    permission_classes = [IsCustomerOrStaff]

    def get(self, request, customer_id, *args, **kwargs):
        customer = CustomerService.get_active_customer(customer_id)
        balance = LoyaltyLedger.balance(customer.id)
        quote = LoyaltyLedger.quote(balance)

        serializer = LoyaltyBalanceSerializer(
            {
                "customer_id": customer.id,
                "balance": balance,
                "redeemable_points": quote.points_consumed,
                "redeemable_value": quote.discount_granted,
            }
        )
        return Response(serializer.data)
