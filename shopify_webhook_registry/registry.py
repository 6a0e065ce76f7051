import logging
from collections import namedtuple

logger = logging.getLogger(__name__)

# ``handler`` is called as handler(topic, shop_domain, body) with the
# normalized topic, the X-Shopify-Shop-Domain value and the raw body.
WebhookHandler = namedtuple("WebhookHandler", ["path", "handler"])


def normalize_topic(topic):
    """Map a topic to its registry key, e.g. ``orders/create`` -> ``ORDERS_CREATE``."""
    return topic.strip().upper().replace("/", "_")


class HandlerTable:
    """Registry mapping normalized webhook topics to their handlers.

    One table serves a whole process: applications fill it during start-up
    (usually from a ``webhooks`` module, see ``apps.py``) and it is only
    read once deliveries start arriving. Adding a topic that is already
    registered replaces the previous handler.
    """

    def __init__(self):
        self._handlers = {}

    def add_handler(self, topic, entry):
        if isinstance(entry, dict):
            entry = WebhookHandler(**entry)
        else:
            entry = WebhookHandler(*entry)
        if not callable(entry.handler):
            raise TypeError(f"Handler for topic {topic} is not callable")
        key = normalize_topic(topic)
        if key in self._handlers:
            logger.debug("Replacing handler for topic: %s", key)
        self._handlers[key] = entry
        logger.debug("Registered handler for topic: %s", key)

    def add_handlers(self, handlers):
        """Register each ``{topic: entry}`` pair in turn.

        Not atomic: if one entry is rejected the ones before it stay
        registered.
        """
        for topic, entry in handlers.items():
            self.add_handler(topic, entry)

    def get_handler(self, topic):
        """Return the WebhookHandler for ``topic``, or None."""
        return self._handlers.get(normalize_topic(topic))

    def get_topics(self):
        return list(self._handlers)

    def is_webhook_path(self, path):
        return any(entry.path == path for entry in self._handlers.values())

    def reset(self):
        """Forget every handler. Meant for test isolation."""
        self._handlers.clear()

    def __contains__(self, topic):
        return normalize_topic(topic) in self._handlers

    def __len__(self):
        return len(self._handlers)


webhook_registry = HandlerTable()


def register_handler(topic, path, handler, table=None):
    """Register ``handler`` for ``topic`` on ``table``, or the process-wide table."""
    table = webhook_registry if table is None else table
    table.add_handler(topic, WebhookHandler(path, handler))
    return handler


def webhook_handler(topic, path):
    """Decorator form of :func:`register_handler`::

        @webhook_handler("orders/create", "/webhooks/shopify/")
        def on_order_created(topic, shop_domain, body):
            ...
    """

    def decorator(func):
        return register_handler(topic, path, func)

    return decorator
