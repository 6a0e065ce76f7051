"""Run webhook handlers in a dramatiq worker instead of the request cycle.

Shopify expects a delivery to be answered within a few seconds, so slow
handlers should only enqueue work::

    def sync_product(topic, shop_domain, body):
        ...

    register_handler(
        "products/update", "/webhooks/shopify/", background_handler(sync_product)
    )

The delivery is acknowledged with 200 as soon as the message is enqueued;
retries happen in the worker with the options below.
"""

import logging

import dramatiq
from requests.exceptions import ConnectionError, Timeout

from .exceptions import HttpMaxRetriesError, HttpRequestError

logger = logging.getLogger(__name__)

SHOPIFY_WEBHOOK_QUEUE = "shopify_webhooks"

DEFAULT_ACTOR_OPTIONS = {
    "max_retries": 5,
    "min_backoff": 30_000,
    "max_backoff": 600_000,
}


def should_retry(retries_so_far, exception):
    """Return True for transient errors, False for permanent ones.

    Transient (retry): ConnectionError, Timeout, HTTP 5xx, HTTP 429.
    Permanent (fail):  ValueError, KeyError, HTTP 4xx (except 429), etc.
    """
    status_code = getattr(exception, "status_code", None)
    if status_code is None:
        response = getattr(exception, "response", None)
        status_code = getattr(response, "status_code", None)
    if status_code is not None:
        return status_code == 429 or 500 <= status_code < 600
    # requests exceptions are OSErrors too, so check the status first.
    return isinstance(
        exception,
        (ConnectionError, Timeout, OSError, HttpRequestError, HttpMaxRetriesError),
    )


def background_handler(fn, queue_name=SHOPIFY_WEBHOOK_QUEUE, broker=None, **actor_options):
    """Wrap ``fn(topic, shop_domain, body)`` as a dramatiq actor.

    Returns a webhook handler that enqueues the delivery and returns
    immediately. The body is sent as text so the message stays JSON
    serializable. The actor is available as ``handler.actor``.
    """
    options = dict(DEFAULT_ACTOR_OPTIONS, retry_when=should_retry)
    options.update(actor_options)
    actor = dramatiq.actor(fn, queue_name=queue_name, broker=broker, **options)

    def handler(topic, shop_domain, body):
        if isinstance(body, bytes):
            body = body.decode("utf-8")
        message = actor.send(topic, shop_domain, body)
        logger.debug(
            "Enqueued webhook %s for %s as message %s", topic, shop_domain, message.message_id
        )

    handler.actor = actor
    handler.__name__ = getattr(fn, "__name__", "background_handler")
    return handler
