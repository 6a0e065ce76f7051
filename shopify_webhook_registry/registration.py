"""Idempotent registration of webhook subscriptions.

Every registration first reads the shop's current subscription for the
topic. A subscription that already points at the target address is left
alone; otherwise one is created, or the existing one is moved to the new
address. Remote state is re-read on every call and never cached.
"""

import logging
from collections import namedtuple

import requests
from datadog import statsd

from . import conf
from .client import ShopifyAdminClient
from .delivery import DeliveryMethod, endpoint_address
from .exceptions import ShopifyError
from .queries import build_check_query, build_mutation
from .registry import normalize_topic, webhook_registry

logger = logging.getLogger(__name__)

SKIPPED = "skipped"
CREATED = "created"
UPDATED = "updated"
FAILED = "failed"

RegisterResult = namedtuple("RegisterResult", ["topic", "success", "result", "action"])

# An existing subscription as read back from the shop.
RemoteSubscription = namedtuple("RemoteSubscription", ["id", "address", "endpoint_type"])


def mutation_succeeded(body, delivery_method, update):
    """True if the mutation's result object holds a subscription payload."""
    name = delivery_method.transport.mutation_name(update=update)
    payload = ((body or {}).get("data") or {}).get(name) or {}
    return bool(payload.get("webhookSubscription"))


class WebhookRegistrar:
    """Registers the topics of a handler table against a shop.

    Args:
        table: HandlerTable supplying topics and paths for ``register_all``.
        api_version: Admin API version; defaults to the configured one.
        client_class: factory called as ``client_class(shop, access_token,
            api_version=...)`` to build the Admin API client.
    """

    def __init__(self, table=None, api_version=None, client_class=None):
        self.table = webhook_registry if table is None else table
        self._api_version = api_version
        self.client_class = client_class or ShopifyAdminClient

    @property
    def api_version(self):
        return self._api_version or conf.api_version()

    def target_address(self, path, delivery_method):
        if delivery_method is DeliveryMethod.HTTP:
            return f"{conf.host_url()}{path}"
        return path

    def register(self, path, topic, access_token, shop, delivery_method=DeliveryMethod.HTTP):
        """Register one topic and return ``{topic: RegisterResult}``.

        Transport failures propagate to the caller.
        """
        delivery_method.validate(self.api_version)
        client = self.client_class(shop, access_token, api_version=self.api_version)
        result = self._register_topic(client, shop, path, topic, delivery_method)
        return {result.topic: result}

    def register_all(self, access_token, shop, delivery_method=DeliveryMethod.HTTP):
        """Register every topic of the handler table, one after another.

        A topic whose registration fails is reported with ``success=False``
        and the remaining topics are still processed.
        """
        delivery_method.validate(self.api_version)
        client = self.client_class(shop, access_token, api_version=self.api_version)

        results = {}
        for topic in self.table.get_topics():
            entry = self.table.get_handler(topic)
            if entry is None:
                continue
            try:
                result = self._register_topic(client, shop, entry.path, topic, delivery_method)
            except (ShopifyError, requests.RequestException) as exc:
                logger.exception("Failed to register webhook topic %s for %s", topic, shop)
                statsd.increment(
                    "shopify.webhook.registration",
                    tags=[f"topic:{topic}", f"shop_domain:{shop}", f"outcome:{FAILED}"],
                )
                result = RegisterResult(topic, False, {"error": str(exc)}, FAILED)
            results[result.topic] = result
        return results

    def check_subscription(self, client, topic):
        """Return the shop's RemoteSubscription for ``topic``, or None."""
        body = client.graphql(build_check_query(topic, self.api_version))
        edges = body["data"]["webhookSubscriptions"]["edges"]
        if not edges:
            return None
        node = edges[0]["node"]
        endpoint = node.get("endpoint") or {}
        return RemoteSubscription(
            node["id"], endpoint_address(endpoint), endpoint.get("__typename")
        )

    def _register_topic(self, client, shop, path, topic, delivery_method):
        topic = normalize_topic(topic)
        address = self.target_address(path, delivery_method)
        # Reject malformed addresses before talking to the shop.
        delivery_method.transport.address_args(address)

        existing = self.check_subscription(client, topic)
        if existing is not None and existing.address == address:
            logger.info("Webhook %s already registered at %s for %s", topic, address, shop)
            result = RegisterResult(topic, True, {}, SKIPPED)
        else:
            webhook_id = existing.id if existing is not None else None
            body = client.graphql(build_mutation(topic, address, delivery_method, webhook_id))
            success = mutation_succeeded(body, delivery_method, update=bool(webhook_id))
            action = UPDATED if webhook_id else CREATED
            if success:
                logger.info("Webhook %s %s at %s for %s", topic, action, address, shop)
            else:
                logger.warning(
                    "Webhook %s could not be %s for %s: %s", topic, action, shop, body
                )
                action = FAILED
            result = RegisterResult(topic, success, body, action)

        statsd.increment(
            "shopify.webhook.registration",
            tags=[f"topic:{topic}", f"shop_domain:{shop}", f"outcome:{result.action}"],
        )
        return result


def register(path, topic, access_token, shop, delivery_method=DeliveryMethod.HTTP):
    """Register one topic against ``shop`` with the configured API version."""
    return WebhookRegistrar().register(path, topic, access_token, shop, delivery_method)


def register_all(access_token, shop, delivery_method=DeliveryMethod.HTTP):
    """Register every topic currently in the process-wide handler table."""
    return WebhookRegistrar().register_all(access_token, shop, delivery_method)
