"""Exception types raised by the Shopify webhook registry."""


class ShopifyError(Exception):
    """Base class for every error raised by this package."""


class InvalidWebhookError(ShopifyError):
    """An inbound delivery was malformed, unauthenticated or unroutable.

    ``status_code`` is the HTTP status the delivery was answered with.
    """

    def __init__(self, message, status_code=400):
        super().__init__(message)
        self.status_code = status_code


class UnsupportedDeliveryMethodError(ShopifyError):
    """The delivery method is not available at the configured API version."""


class InvalidDeliveryAddressError(ShopifyError):
    """A subscription address does not have the shape its delivery method needs."""


class InvalidWebhookTopicError(ShopifyError, ValueError):
    """A topic cannot be written as a GraphQL WebhookSubscriptionTopic value."""


class HttpRequestError(ShopifyError):
    """The Admin API could not be reached."""


class HttpResponseError(ShopifyError):
    """The Admin API answered with a non-2xx status."""

    def __init__(self, message, status_code, reason="", body=None, headers=None):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.body = body
        self.headers = headers or {}


class HttpThrottlingError(HttpResponseError):
    def __init__(self, message, retry_after=None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class HttpMaxRetriesError(ShopifyError):
    """Every allowed attempt ended with a retriable failure."""


class GraphqlQueryError(ShopifyError):
    """A GraphQL response carried top-level ``errors``."""

    def __init__(self, message, body=None):
        super().__init__(message)
        self.body = body
