"""Tests for the Shopify webhook view and path middleware."""

import base64
import hashlib
import hmac as hmac_mod
import json
from unittest.mock import MagicMock

import pytest
from rest_framework.test import APIClient

from shopify_webhook_registry.registry import WebhookHandler, webhook_registry

WEBHOOK_SECRET = "test-api-secret-key"
SHOP_DOMAIN = "test-shop.myshopify.com"
WEBHOOK_URL = "/webhooks/shopify/"


def _hmac_header(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    """Compute a valid HMAC-SHA256 header value."""
    return base64.b64encode(
        hmac_mod.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    ).decode("utf-8")


def _post_webhook(client, url, payload, topic="orders/create",
                  shop_domain=SHOP_DOMAIN, secret=WEBHOOK_SECRET):
    """Helper to POST a webhook with correct Shopify headers."""
    body = json.dumps(payload).encode("utf-8")
    return client.post(
        url,
        data=body,
        content_type="application/json",
        HTTP_X_SHOPIFY_SHOP_DOMAIN=shop_domain,
        HTTP_X_SHOPIFY_HMAC_SHA256=_hmac_header(body, secret),
        HTTP_X_SHOPIFY_TOPIC=topic,
    )


@pytest.fixture
def handler():
    handler = MagicMock()
    webhook_registry.add_handler("ORDERS_CREATE", WebhookHandler(WEBHOOK_URL, handler))
    return handler


class TestShopifyWebhookView:
    def setup_method(self):
        self.client = APIClient()

    def test_valid_delivery_returns_200(self, handler):
        response = _post_webhook(self.client, WEBHOOK_URL, {"id": 1})

        assert response.status_code == 200
        handler.assert_called_once()
        topic, shop_domain, body = handler.call_args[0]
        assert topic == "ORDERS_CREATE"
        assert shop_domain == SHOP_DOMAIN
        assert json.loads(body) == {"id": 1}

    def test_missing_shop_domain_returns_400(self, handler):
        body = b'{"id": 1}'
        response = self.client.post(
            WEBHOOK_URL,
            data=body,
            content_type="application/json",
            HTTP_X_SHOPIFY_HMAC_SHA256=_hmac_header(body),
            HTTP_X_SHOPIFY_TOPIC="orders/create",
        )
        assert response.status_code == 400
        assert "X-Shopify-Shop-Domain" in response.json()["error"]
        handler.assert_not_called()

    def test_empty_body_returns_400(self, handler):
        response = self.client.post(
            WEBHOOK_URL,
            data=b"",
            content_type="application/json",
            HTTP_X_SHOPIFY_SHOP_DOMAIN=SHOP_DOMAIN,
            HTTP_X_SHOPIFY_HMAC_SHA256=_hmac_header(b""),
            HTTP_X_SHOPIFY_TOPIC="orders/create",
        )
        assert response.status_code == 400

    def test_invalid_hmac_returns_403(self, handler):
        body = json.dumps({"id": 1}).encode("utf-8")
        response = self.client.post(
            WEBHOOK_URL,
            data=body,
            content_type="application/json",
            HTTP_X_SHOPIFY_SHOP_DOMAIN=SHOP_DOMAIN,
            HTTP_X_SHOPIFY_HMAC_SHA256="invalid-hmac-value",
            HTTP_X_SHOPIFY_TOPIC="orders/create",
        )
        assert response.status_code == 403
        assert "Could not validate" in response.json()["error"]
        handler.assert_not_called()

    def test_wrong_secret_hmac_returns_403(self, handler):
        response = _post_webhook(self.client, WEBHOOK_URL, {"id": 1}, secret="wrong-secret")
        assert response.status_code == 403
        handler.assert_not_called()

    def test_unregistered_topic_returns_403(self, handler):
        response = _post_webhook(self.client, WEBHOOK_URL, {"id": 1}, topic="products/delete")
        assert response.status_code == 403
        assert "No webhook is registered" in response.json()["error"]

    def test_handler_failure_returns_500(self, handler):
        handler.side_effect = RuntimeError("boom")
        response = _post_webhook(self.client, WEBHOOK_URL, {"id": 1})
        assert response.status_code == 500
        assert response.json() == {"error": "Webhook handler failed"}

    def test_get_not_allowed(self, handler):
        response = self.client.get(WEBHOOK_URL)
        assert response.status_code == 405


class TestWebhookPathMiddleware:
    def setup_method(self):
        self.client = APIClient()

    def test_registered_path_without_route_is_dispatched(self):
        handler = MagicMock()
        webhook_registry.add_handler(
            "PRODUCTS_UPDATE", WebhookHandler("/hooks/products/", handler)
        )

        response = _post_webhook(
            self.client, "/hooks/products/", {"id": 2}, topic="products/update"
        )

        assert response.status_code == 200
        handler.assert_called_once()

    def test_rejections_on_middleware_path_are_rendered(self):
        webhook_registry.add_handler(
            "PRODUCTS_UPDATE", WebhookHandler("/hooks/products/", MagicMock())
        )
        response = _post_webhook(
            self.client, "/hooks/products/", {"id": 2}, topic="products/update",
            secret="wrong-secret",
        )
        assert response.status_code == 403
        assert "error" in response.json()

    def test_other_requests_pass_through(self, handler):
        response = self.client.get("/ping/")
        assert response.status_code == 200
        assert response.content == b"pong"

    def test_unregistered_path_is_not_intercepted(self):
        response = _post_webhook(self.client, "/hooks/unknown/", {"id": 3})
        assert response.status_code == 404
