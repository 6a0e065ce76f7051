import base64
import hashlib
import hmac


def _to_bytes(value):
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def compute_shopify_hmac(request_body, secret):
    """Return the Base64-encoded HMAC-SHA256 digest Shopify sends for a body."""
    return base64.b64encode(
        hmac.new(_to_bytes(secret), _to_bytes(request_body), hashlib.sha256).digest()
    ).decode("utf-8")


def verify_shopify_hmac(request_body, hmac_header, secret) -> bool:
    """Verify the HMAC-SHA256 signature from a Shopify webhook request.

    Shopify sends an X-Shopify-Hmac-Sha256 header containing a Base64-encoded
    HMAC-SHA256 digest of the raw request body, computed using the app's
    API secret key. The digest must be computed over the body exactly as
    received, before any parsing.

    Args:
        request_body: The raw HTTP request body (bytes or str).
        hmac_header: The value of the X-Shopify-Hmac-Sha256 header.
        secret: The app's API secret key (str or bytes).

    Returns:
        True if the signature is valid, False otherwise.
    """
    if not hmac_header:
        return False
    computed = compute_shopify_hmac(request_body, secret)
    # Compare as bytes: compare_digest rejects non-ASCII str input.
    return hmac.compare_digest(computed.encode("utf-8"), _to_bytes(hmac_header))
