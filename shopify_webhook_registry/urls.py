from django.urls import path

from .views import ShopifyWebhookView

urlpatterns = [
    path(
        "",
        ShopifyWebhookView.as_view(),
        name="shopify_webhook",
    ),
]
