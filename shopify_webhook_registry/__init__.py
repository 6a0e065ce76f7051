"""Shopify webhook subscription registry and delivery processing for Django."""

from .delivery import DeliveryMethod
from .processor import InboundProcessor, WebhookRequest, WebhookResponse, process
from .registration import RegisterResult, WebhookRegistrar, register, register_all
from .registry import (
    HandlerTable,
    WebhookHandler,
    normalize_topic,
    register_handler,
    webhook_handler,
    webhook_registry,
)
from .signature import verify_shopify_hmac

__all__ = [
    "DeliveryMethod",
    "HandlerTable",
    "InboundProcessor",
    "RegisterResult",
    "WebhookHandler",
    "WebhookRegistrar",
    "WebhookRequest",
    "WebhookResponse",
    "normalize_topic",
    "process",
    "register",
    "register_all",
    "register_handler",
    "verify_shopify_hmac",
    "webhook_handler",
    "webhook_registry",
]
