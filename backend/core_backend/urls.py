"""
URL configuration for the fulfillment backend.
"""

from django.contrib import admin
from django.http import JsonResponse
from django.urls import path, include


def health_check(request):
    """Simple health check endpoint that doesn't require authentication"""
    return JsonResponse({"status": "ok", "message": "Backend is running"})


urlpatterns = [
    path("api/health/", health_check, name="health_check"),
    path("admin/", admin.site.urls),
    # The orders app registers its own "orders" prefix.
    path("api/", include("orders.urls")),
    path("api/payments/", include("payments.urls")),
    path("api/offers/", include("offers.urls")),
    path("api/loyalty/", include("loyalty.urls")),
]
