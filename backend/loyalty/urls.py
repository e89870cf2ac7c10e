from django.urls import path
from .views import LoyaltyBalanceView

urlpatterns = [
    path("<uuid:customer_id>/", LoyaltyBalanceView.as_view(), name="loyalty-balance"),
]
