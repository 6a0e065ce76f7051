from django.apps import AppConfig
from django.utils.module_loading import autodiscover_modules


class ShopifyWebhookRegistryConfig(AppConfig):
    name = "shopify_webhook_registry"
    verbose_name = "Shopify Webhook Registry"

    def ready(self):
        # Import each installed app's webhooks module so its handlers are
        # in the registry before any delivery arrives.
        autodiscover_modules("webhooks")
