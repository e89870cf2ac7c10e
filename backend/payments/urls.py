from django.urls import path

from .views import CreateOrderPaymentIntentView, StripeWebhookView

app_name = "payments"

urlpatterns = [
    path("webhook/", StripeWebhookView.as_view(), name="stripe-webhook"),
    path(
        "orders/<uuid:order_id>/intent/",
        CreateOrderPaymentIntentView.as_view(),
        name="order-payment-intent",
    ),
]
