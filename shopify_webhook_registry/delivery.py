"""Delivery methods for webhook subscriptions.

Each method knows how to turn a target address into subscription
arguments, which mutation writes it, how to read the address back from an
existing endpoint, and from which API version it is available.
"""

import enum

from .exceptions import InvalidDeliveryAddressError, UnsupportedDeliveryMethodError
from .versions import PUBSUB_MIN_VERSION, version_compatible

PUBSUB_SCHEME = "pubsub://"


class DeliveryMethod(enum.Enum):
    HTTP = "http"
    EVENT_BRIDGE = "eventbridge"
    PUBSUB = "pubsub"

    @property
    def transport(self):
        return _TRANSPORTS[self]

    def validate(self, api_version):
        self.transport.validate(api_version)

    def is_supported(self, api_version):
        return self.transport.is_supported(api_version)


class Transport:
    name = ""
    mutation_prefix = ""
    endpoint_typename = ""
    min_version = None

    def is_supported(self, api_version):
        return self.min_version is None or version_compatible(
            self.min_version, api_version
        )

    def validate(self, api_version):
        """Raise UnsupportedDeliveryMethodError if unavailable at ``api_version``."""
        if not self.is_supported(api_version):
            raise UnsupportedDeliveryMethodError(
                f'{self.name} webhooks are not supported in API version "{api_version}".'
            )

    def mutation_name(self, update=False):
        return self.mutation_prefix + ("Update" if update else "Create")

    def address_args(self, address):
        raise NotImplementedError

    def endpoint_address(self, endpoint):
        raise NotImplementedError


class HttpTransport(Transport):
    name = "HTTP"
    mutation_prefix = "webhookSubscription"
    endpoint_typename = "WebhookHttpEndpoint"

    def address_args(self, address):
        return {"callbackUrl": address}

    def endpoint_address(self, endpoint):
        return endpoint.get("callbackUrl", "")


class EventBridgeTransport(Transport):
    name = "EventBridge"
    mutation_prefix = "eventBridgeWebhookSubscription"
    endpoint_typename = "WebhookEventBridgeEndpoint"

    def address_args(self, address):
        return {"arn": address}

    def endpoint_address(self, endpoint):
        return endpoint.get("arn", "")


class PubSubTransport(Transport):
    name = "Pub/Sub"
    mutation_prefix = "pubSubWebhookSubscription"
    endpoint_typename = "WebhookPubSubEndpoint"
    min_version = PUBSUB_MIN_VERSION

    def address_args(self, address):
        project, topic = parse_pubsub_address(address)
        return {"pubSubProject": project, "pubSubTopic": topic}

    def endpoint_address(self, endpoint):
        project = endpoint.get("pubSubProject")
        topic = endpoint.get("pubSubTopic")
        if not project or not topic:
            return ""
        return f"{PUBSUB_SCHEME}{project}:{topic}"


def parse_pubsub_address(address):
    """Split ``pubsub://<project>:<topic>`` into its project and topic.

    Raises InvalidDeliveryAddressError unless both parts are present and
    non-empty.
    """
    value = address or ""
    if value.startswith(PUBSUB_SCHEME):
        value = value[len(PUBSUB_SCHEME):]
    parts = value.split(":")
    if len(parts) != 2 or not all(part.strip() for part in parts):
        raise InvalidDeliveryAddressError(
            f"Pub/Sub address must look like '{PUBSUB_SCHEME}<project>:<topic>', "
            f"got '{address}'"
        )
    return parts[0], parts[1]


_TRANSPORTS = {
    DeliveryMethod.HTTP: HttpTransport(),
    DeliveryMethod.EVENT_BRIDGE: EventBridgeTransport(),
    DeliveryMethod.PUBSUB: PubSubTransport(),
}

_TRANSPORTS_BY_TYPENAME = {
    transport.endpoint_typename: transport for transport in _TRANSPORTS.values()
}


def endpoint_address(endpoint):
    """Return the address an existing subscription endpoint points at.

    Unknown endpoint kinds decode to an empty string, which never equals a
    target address.
    """
    transport = _TRANSPORTS_BY_TYPENAME.get((endpoint or {}).get("__typename"))
    if transport is None:
        return ""
    return transport.endpoint_address(endpoint)
