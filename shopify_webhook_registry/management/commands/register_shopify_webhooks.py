"""
Register Shopify webhook subscriptions for every topic in the handler table.

Usage:
    python manage.py register_shopify_webhooks \
        --shop my-shop.myshopify.com --access-token shpat_...

    # Register a single topic
    python manage.py register_shopify_webhooks --shop ... --access-token ... \
        --topic orders/create --path /webhooks/shopify/

    # EventBridge / Pub/Sub: --path carries the ARN or pubsub://project:topic
    python manage.py register_shopify_webhooks --shop ... --access-token ... \
        --delivery-method pubsub --topic orders/create --path pubsub://proj:orders

    # List current subscriptions
    python manage.py register_shopify_webhooks --shop ... --access-token ... --list
"""

import logging

from django.core.management.base import BaseCommand, CommandError

from shopify_webhook_registry.client import ShopifyAdminClient
from shopify_webhook_registry.delivery import DeliveryMethod, endpoint_address
from shopify_webhook_registry.exceptions import ShopifyError
from shopify_webhook_registry.registration import WebhookRegistrar

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Register Shopify webhook subscriptions for a shop"

    def add_arguments(self, parser):
        parser.add_argument(
            "--shop",
            type=str,
            required=True,
            help="The shop domain, e.g. my-shop.myshopify.com.",
        )
        parser.add_argument(
            "--access-token",
            type=str,
            required=True,
            help="Admin API access token for the shop.",
        )
        parser.add_argument(
            "--delivery-method",
            type=str,
            default=DeliveryMethod.HTTP.value,
            choices=[method.value for method in DeliveryMethod],
            help="How Shopify should deliver events (default: http).",
        )
        parser.add_argument(
            "--topic",
            type=str,
            default="",
            help="Register only this topic (requires --path).",
        )
        parser.add_argument(
            "--path",
            type=str,
            default="",
            help="Callback path, ARN or pubsub:// address for --topic.",
        )
        parser.add_argument(
            "--list",
            action="store_true",
            dest="list_webhooks",
            help="List the webhook subscriptions currently registered for this shop.",
        )

    def handle(self, *args, **options):
        shop = options["shop"]
        access_token = options["access_token"]

        if options["list_webhooks"]:
            self._list_webhooks(shop, access_token)
            return

        delivery_method = DeliveryMethod(options["delivery_method"])
        registrar = WebhookRegistrar()
        logger.info(
            "Registering Shopify webhooks for %s (delivery=%s)", shop, delivery_method.value
        )
        try:
            if options["topic"]:
                if not options["path"]:
                    raise CommandError("--path is required together with --topic.")
                results = registrar.register(
                    options["path"], options["topic"], access_token, shop, delivery_method
                )
            else:
                results = registrar.register_all(access_token, shop, delivery_method)
        except ShopifyError as exc:
            raise CommandError(str(exc)) from exc

        if not results:
            self.stdout.write("No webhook handlers are registered; nothing to do.")
            return

        failed = 0
        for topic, result in sorted(results.items()):
            if result.success:
                self.stdout.write(f"  {result.action.upper()}: {topic}")
            else:
                failed += 1
                self.stderr.write(f"  FAILED: {topic}: {result.result}")

        self.stdout.write(
            f"\nDone: {len(results) - failed} registered, {failed} failed (shop={shop})"
        )

    def _list_webhooks(self, shop, access_token):
        client = ShopifyAdminClient(shop, access_token)
        try:
            subscriptions = list(client.iter_webhook_subscriptions())
        except ShopifyError as exc:
            raise CommandError(f"Failed to list webhooks: {exc}") from exc

        if not subscriptions:
            self.stdout.write(f"No webhooks registered for {shop}")
            return

        self.stdout.write(f"Webhooks for {shop}:")
        self.stdout.write(f"{'ID':<45} {'Topic':<30} {'Address'}")
        self.stdout.write("-" * 100)
        for node in subscriptions:
            self.stdout.write(
                f"{node['id']:<45} {node['topic']:<30} "
                f"{endpoint_address(node.get('endpoint'))}"
            )
        self.stdout.write(f"\nTotal: {len(subscriptions)}")
