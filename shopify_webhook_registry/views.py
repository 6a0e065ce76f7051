import logging

from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .exceptions import InvalidWebhookError
from .processor import InboundProcessor, WebhookRequest, WebhookResponse

logger = logging.getLogger(__name__)


class ShopifyWebhookView(APIView):
    """Receives Shopify webhook deliveries for every registered topic.

    Authentication, routing and dispatch are done by
    :class:`~shopify_webhook_registry.processor.InboundProcessor`; this view
    only turns its outcome into an HTTP response. ``processor_class`` can
    be swapped to point a view at a different handler table.
    """

    authentication_classes = []
    permission_classes = [AllowAny]
    processor_class = InboundProcessor

    def get_processor(self):
        return self.processor_class()

    def post(self, request):
        # request.body is the raw payload; it must be read before DRF parses it.
        webhook_request = WebhookRequest(request.body, request.headers)
        webhook_response = WebhookResponse()

        try:
            self.get_processor().process(webhook_request, webhook_response)
        except InvalidWebhookError as exc:
            return Response(
                {"error": str(exc)},
                status=webhook_response.status_code or exc.status_code,
                headers=webhook_response.headers,
            )
        except Exception:
            logger.exception(
                "Webhook handler failed (topic=%s, shop=%s)",
                request.headers.get("X-Shopify-Topic"),
                request.headers.get("X-Shopify-Shop-Domain"),
            )
            return Response(
                {"error": "Webhook handler failed"},
                status=webhook_response.status_code
                or status.HTTP_500_INTERNAL_SERVER_ERROR,
                headers=webhook_response.headers,
            )

        return Response(
            status=webhook_response.status_code, headers=webhook_response.headers
        )
