"""Settings for the Shopify webhook registry.

Configured through a single ``SHOPIFY_WEBHOOKS`` dict in Django settings::

    SHOPIFY_WEBHOOKS = {
        "API_SECRET_KEY": env("SHOPIFY_API_SECRET"),
        "API_VERSION": "2024-07",
        "HOST_NAME": "api.example.com",
    }

Values are read on every access so tests can override them with
``override_settings`` or the pytest-django ``settings`` fixture.
"""

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

SETTINGS_NAME = "SHOPIFY_WEBHOOKS"

DEFAULTS = {
    "API_SECRET_KEY": None,
    "API_VERSION": "2024-07",
    "HOST_NAME": None,
    "HOST_SCHEME": "https",
    "RETRIES": 1,
    "TIMEOUT": 30,
}

REQUIRED = frozenset({"API_SECRET_KEY", "HOST_NAME"})


def get_setting(name):
    """Return the configured value for ``name``, falling back to the default.

    Raises ImproperlyConfigured when a required setting has no value.
    """
    if name not in DEFAULTS:
        raise ImproperlyConfigured(f"Unknown {SETTINGS_NAME} setting: {name}")
    user_settings = getattr(settings, SETTINGS_NAME, None) or {}
    value = user_settings.get(name, DEFAULTS[name])
    if value is None and name in REQUIRED:
        raise ImproperlyConfigured(
            f"{SETTINGS_NAME}['{name}'] must be set to use the webhook registry"
        )
    return value


def api_version():
    return get_setting("API_VERSION")


def api_secret_key():
    return get_setting("API_SECRET_KEY")


def host_url():
    """Public base URL used to build HTTP callback addresses."""
    host = get_setting("HOST_NAME").rstrip("/")
    return f"{get_setting('HOST_SCHEME')}://{host}"
