from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import OfferViewSet, ValidateOfferView

router = SimpleRouter()
router.register(r"", OfferViewSet, basename="offer")

urlpatterns = [
    path("validate/", ValidateOfferView.as_view(), name="validate-offer"),
    path("", include(router.urls)),
]
