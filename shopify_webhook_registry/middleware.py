from .registry import webhook_registry
from .views import ShopifyWebhookView


class WebhookPathMiddleware:
    """Send POSTs to registered webhook paths straight to the webhook view.

    Lets handler paths work without matching URLconf entries. Any other
    request continues down the middleware chain untouched.
    """

    table = webhook_registry

    def __init__(self, get_response):
        self.get_response = get_response
        self.webhook_view = ShopifyWebhookView.as_view()

    def __call__(self, request):
        if request.method == "POST" and self.table.is_webhook_path(request.path):
            response = self.webhook_view(request)
            # Responses returned from middleware skip Django's render step.
            response.render()
            return response
        return self.get_response(request)
