"""GraphQL documents for reading and writing webhook subscriptions."""

import json
import re

from .delivery import DeliveryMethod
from .exceptions import InvalidWebhookTopicError
from .registry import normalize_topic

_TOPIC_RE = re.compile(r"^[A-Z][A-Z0-9_]*$")

SUBSCRIPTION_PAGE_SIZE = 50


def _graphql_topic(topic):
    graphql_topic = normalize_topic(topic)
    if not _TOPIC_RE.match(graphql_topic):
        raise InvalidWebhookTopicError(f"Invalid webhook topic: {topic!r}")
    return graphql_topic


def _graphql_object(args):
    # JSON string escaping is valid GraphQL string escaping.
    fields = ", ".join(f"{key}: {json.dumps(value)}" for key, value in args.items())
    return "{" + fields + "}"


def _endpoint_selection(api_version):
    fragments = [
        "... on WebhookHttpEndpoint { callbackUrl }",
        "... on WebhookEventBridgeEndpoint { arn }",
    ]
    # Older schemas have no WebhookPubSubEndpoint type at all.
    if DeliveryMethod.PUBSUB.is_supported(api_version):
        fragments.append("... on WebhookPubSubEndpoint { pubSubProject pubSubTopic }")
    return "\n".join(["__typename"] + fragments)


def build_check_query(topic, api_version):
    """Query for at most one existing subscription on ``topic``."""
    return f"""{{
  webhookSubscriptions(first: 1, topics: {_graphql_topic(topic)}) {{
    edges {{
      node {{
        id
        endpoint {{
          {_endpoint_selection(api_version)}
        }}
      }}
    }}
  }}
}}"""


def build_mutation(topic, address, delivery_method=DeliveryMethod.HTTP, webhook_id=None):
    """Mutation creating a subscription, or updating ``webhook_id`` when given.

    Create and update are separate remote operations; the delivery method
    picks the operation family and the shape of the address arguments.
    """
    transport = delivery_method.transport
    if webhook_id:
        identifier = f"id: {json.dumps(webhook_id)}"
    else:
        identifier = f"topic: {_graphql_topic(topic)}"
    mutation_name = transport.mutation_name(update=bool(webhook_id))
    subscription_args = _graphql_object(transport.address_args(address))

    return f"""mutation webhookSubscription {{
  {mutation_name}({identifier}, webhookSubscription: {subscription_args}) {{
    userErrors {{
      field
      message
    }}
    webhookSubscription {{
      id
    }}
  }}
}}"""


def build_list_query(api_version, first=SUBSCRIPTION_PAGE_SIZE, after=None):
    """One page of every subscription on the shop, for cursor pagination."""
    cursor = f", after: {json.dumps(after)}" if after else ""
    return f"""{{
  webhookSubscriptions(first: {int(first)}{cursor}) {{
    edges {{
      cursor
      node {{
        id
        topic
        endpoint {{
          {_endpoint_selection(api_version)}
        }}
      }}
    }}
    pageInfo {{
      hasNextPage
      endCursor
    }}
  }}
}}"""
