import pytest

from shopify_webhook_registry.registry import HandlerTable, webhook_registry


@pytest.fixture(autouse=True)
def reset_webhook_registry():
    webhook_registry.reset()
    yield
    webhook_registry.reset()


@pytest.fixture(autouse=True)
def statsd(mocker):
    """Keep metrics off the network and let tests assert on them."""
    mock_statsd = mocker.MagicMock()
    mocker.patch("shopify_webhook_registry.processor.statsd", mock_statsd)
    mocker.patch("shopify_webhook_registry.registration.statsd", mock_statsd)
    return mock_statsd


@pytest.fixture
def table():
    return HandlerTable()
