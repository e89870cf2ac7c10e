import logging

from rest_framework import permissions, status, viewsets
from rest_framework.response import Response
from rest_framework.views import APIView

from payments.money import money

from .models import Offer
from .serializers import OfferSerializer, OfferValidateSerializer
from .services import OfferValidator

logger = logging.getLogger(__name__)


class OfferViewSet(viewsets.ModelViewSet):
    """
    Offers. Staff manage them; any authenticated caller can list the ones
    currently available, optionally narrowed with ?audience=.
    """

    serializer_class = OfferSerializer
    queryset = Offer.objects.all()

    def get_permissions(self):
        if self.action in ("list", "retrieve"):
            return [permissions.IsAuthenticated()]
        return [permissions.IsAdminUser()]

    def get_queryset(self):
        if self.action == "list" and not self.request.user.is_staff:
            return OfferValidator.active_offers(self.request.query_params.get("audience"))
        return super().get_queryset()


class ValidateOfferView(APIView):
    """
    Dry-run validation: returns the discount an offer would grant without
    claiming any usage.
    """

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, *args, **kwargs):
        serializer = OfferValidateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        audience = data.get("audience")
        if not audience and data.get("customer_id"):
            audience = OfferValidator.audience_for_customer(data["customer_id"])
        audience = audience or Offer.Audience.ALL

        discount = OfferValidator.validate(data["offer_id"], data["order_amount"], audience)
        logger.info(f"Offer {data['offer_id']} validated for {audience}: discount {discount}")

        return Response(
            {
                "offer_id": data["offer_id"],
                "audience": audience,
                "discount": str(money(discount)),
            },
            status=status.HTTP_200_OK,
        )
