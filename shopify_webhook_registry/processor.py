"""Authentication and dispatch of inbound Shopify webhook deliveries."""

import logging
import time

from datadog import statsd

from . import conf
from .exceptions import InvalidWebhookError
from .registry import normalize_topic, webhook_registry
from .signature import verify_shopify_hmac

logger = logging.getLogger(__name__)

HTTP_200_OK = 200
HTTP_400_BAD_REQUEST = 400
HTTP_403_FORBIDDEN = 403
HTTP_500_INTERNAL_SERVER_ERROR = 500


class ShopifyHeader:
    HMAC = "X-Shopify-Hmac-Sha256"
    TOPIC = "X-Shopify-Topic"
    DOMAIN = "X-Shopify-Shop-Domain"
    WEBHOOK_ID = "X-Shopify-Webhook-Id"
    API_VERSION = "X-Shopify-API-Version"


class WebhookRequest:
    """Raw body and headers of one delivery. ``headers`` may be any mapping
    or an iterable of ``(name, value)`` pairs."""

    def __init__(self, body, headers):
        self.body = body
        self.headers = headers


class WebhookResponse:
    def __init__(self):
        self.status_code = None
        self.headers = {}


def _flat_headers(headers):
    pairs = headers.items() if hasattr(headers, "items") else headers
    for name, value in pairs:
        if isinstance(value, (list, tuple)):
            for item in value:
                yield name, item
        else:
            yield name, value


def _find_headers(headers, *names):
    wanted = {name.lower(): name for name in names}
    found = {}
    for header, value in _flat_headers(headers or {}):
        name = wanted.get(header.lower())
        if name is not None and name not in found:
            found[name] = value
    return found


class InboundProcessor:
    """Checks, authenticates and dispatches webhook deliveries.

    :meth:`process` leaves the status code to answer with on the response
    and raises whenever the delivery did not end in a handler succeeding:
    InvalidWebhookError for rejected deliveries, or the handler's own
    exception (with a 500 status) when the handler failed.
    """

    def __init__(self, table=None, secret=None):
        self.table = webhook_registry if table is None else table
        self._secret = secret

    @property
    def secret(self):
        return self._secret or conf.api_secret_key()

    def _reject(self, response, status_code, message, topic=None, shop_domain=None):
        response.status_code = status_code
        response.headers = {}
        statsd.increment(
            "shopify.webhook.rejected",
            tags=[f"topic:{topic}", f"shop_domain:{shop_domain}", f"status:{status_code}"],
        )
        logger.warning("Rejected webhook delivery (%s): %s", status_code, message)
        raise InvalidWebhookError(message, status_code=status_code)

    def process(self, request, response):
        body = request.body
        if not body:
            self._reject(
                response,
                HTTP_400_BAD_REQUEST,
                "No body was received when processing webhook",
            )

        found = _find_headers(
            request.headers, ShopifyHeader.HMAC, ShopifyHeader.TOPIC, ShopifyHeader.DOMAIN
        )
        hmac_header = found.get(ShopifyHeader.HMAC)
        topic = found.get(ShopifyHeader.TOPIC)
        shop_domain = found.get(ShopifyHeader.DOMAIN)

        missing = [
            name
            for name, value in (
                (ShopifyHeader.HMAC, hmac_header),
                (ShopifyHeader.TOPIC, topic),
                (ShopifyHeader.DOMAIN, shop_domain),
            )
            if not value
        ]
        if missing:
            self._reject(
                response,
                HTTP_400_BAD_REQUEST,
                "Missing one or more of the required HTTP headers to process "
                f"webhooks: [{', '.join(missing)}]",
                topic,
                shop_domain,
            )

        # Signature first: nothing about the body is trusted before this.
        if not verify_shopify_hmac(body, hmac_header, self.secret):
            self._reject(
                response,
                HTTP_403_FORBIDDEN,
                f"Could not validate request for topic {topic}",
                topic,
                shop_domain,
            )

        graphql_topic = normalize_topic(topic)
        entry = self.table.get_handler(graphql_topic)
        if entry is None:
            self._reject(
                response,
                HTTP_403_FORBIDDEN,
                f"No webhook is registered for topic {topic}",
                topic,
                shop_domain,
            )

        tags = [f"topic:{graphql_topic}", f"shop_domain:{shop_domain}"]
        statsd.increment("shopify.webhook.received", tags=tags)

        start = time.monotonic()
        try:
            entry.handler(graphql_topic, shop_domain, body)
        except Exception:
            response.status_code = HTTP_500_INTERNAL_SERVER_ERROR
            response.headers = {}
            statsd.increment("shopify.webhook.failed", tags=tags)
            raise
        else:
            response.status_code = HTTP_200_OK
            response.headers = {}
            statsd.increment("shopify.webhook.processed", tags=tags)
            logger.info(
                "Processed webhook delivery: topic=%s, shop=%s", graphql_topic, shop_domain
            )
        finally:
            statsd.histogram(
                "shopify.webhook.processing_time_ms",
                int((time.monotonic() - start) * 1000),
                tags=tags,
            )


def process(request, response):
    """Process a delivery against the process-wide handler table."""
    InboundProcessor().process(request, response)
