"""Tests for the GraphQL documents used for registration."""

import pytest

from shopify_webhook_registry.delivery import DeliveryMethod
from shopify_webhook_registry.exceptions import InvalidWebhookTopicError, ShopifyError
from shopify_webhook_registry.queries import (
    build_check_query,
    build_list_query,
    build_mutation,
)


class TestBuildCheckQuery:
    def test_requests_one_subscription_for_normalized_topic(self):
        query = build_check_query("orders/create", "2024-07")
        assert "webhookSubscriptions(first: 1, topics: ORDERS_CREATE)" in query
        assert "__typename" in query
        assert "callbackUrl" in query
        assert "arn" in query

    def test_includes_pubsub_fields_when_supported(self):
        query = build_check_query("ORDERS_CREATE", "2021-07")
        assert "WebhookPubSubEndpoint" in query
        assert "pubSubProject" in query

    def test_omits_pubsub_fields_before_cutoff(self):
        query = build_check_query("ORDERS_CREATE", "2021-04")
        assert "WebhookPubSubEndpoint" not in query
        assert "pubSubTopic" not in query

    def test_rejects_topic_that_is_not_an_enum_value(self):
        with pytest.raises(InvalidWebhookTopicError):
            build_check_query('ORDERS_CREATE) { id } #', "2024-07")

    def test_invalid_topic_error_is_a_shopify_error(self):
        with pytest.raises(ShopifyError, match="Invalid webhook topic"):
            build_check_query("orders-updated", "2024-07")


class TestBuildMutation:
    def test_http_create(self):
        query = build_mutation("orders/create", "https://app.example.com/hooks")
        assert query.startswith("mutation webhookSubscription")
        assert (
            'webhookSubscriptionCreate(topic: ORDERS_CREATE, '
            'webhookSubscription: {callbackUrl: "https://app.example.com/hooks"})'
        ) in query
        assert "userErrors" in query

    def test_http_update_uses_id_instead_of_topic(self):
        query = build_mutation(
            "orders/create",
            "https://app.example.com/hooks",
            DeliveryMethod.HTTP,
            "gid://shopify/WebhookSubscription/7",
        )
        assert 'webhookSubscriptionUpdate(id: "gid://shopify/WebhookSubscription/7"' in query
        assert "topic:" not in query

    def test_event_bridge_create(self):
        query = build_mutation("ORDERS_CREATE", "arn:aws:events:x", DeliveryMethod.EVENT_BRIDGE)
        assert (
            'eventBridgeWebhookSubscriptionCreate(topic: ORDERS_CREATE, '
            'webhookSubscription: {arn: "arn:aws:events:x"})'
        ) in query

    def test_pubsub_update(self):
        query = build_mutation(
            "ORDERS_CREATE", "pubsub://proj:orders", DeliveryMethod.PUBSUB, "gid://1"
        )
        assert "pubSubWebhookSubscriptionUpdate" in query
        assert '{pubSubProject: "proj", pubSubTopic: "orders"}' in query

    def test_address_is_escaped(self):
        query = build_mutation("ORDERS_CREATE", 'https://x/"}) { evil }')
        assert 'callbackUrl: "https://x/\\"}) { evil }"' in query


class TestBuildListQuery:
    def test_first_page(self):
        query = build_list_query("2024-07", first=25)
        assert "webhookSubscriptions(first: 25)" in query
        assert "hasNextPage" in query
        assert "endCursor" in query

    def test_following_page_uses_cursor(self):
        query = build_list_query("2024-07", first=25, after="abc==")
        assert 'webhookSubscriptions(first: 25, after: "abc==")' in query
