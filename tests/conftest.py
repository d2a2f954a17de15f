"""
Pytest configuration and shared fixtures for appraisal tests.
"""
import pytest

from core.config.settings import Settings, LoggingSettings, MarketDataSettings, ValuationSettings
from tests.mocks.mock_market_data import MockMarketDataProvider, make_order, JITA_SYSTEM, AMARR_SYSTEM


@pytest.fixture
def test_settings(tmp_path):
    """Test settings configuration."""
    return Settings(
        _env_file=None,
        environment="testing",
        logging=LoggingSettings(level="DEBUG", console_enabled=False),
        market_data=MarketDataSettings(
            base_url="https://esi.test/latest",
            cache_dir=str(tmp_path / "cache"),
            max_retries=2,
            retry_base_delay=0.0,
        ),
        valuation=ValuationSettings(max_concurrency=10, force_refresh=True),
    )


@pytest.fixture
def tritanium_book():
    """Order book for a single item with depth on both sides plus an off-hub order."""
    return [
        make_order(5.10, 1000, is_buy=False),
        make_order(5.00, 500, is_buy=False),
        make_order(4.80, 800, is_buy=True),
        make_order(4.90, 200, is_buy=True),
        make_order(1.00, 100000, is_buy=False, system_id=AMARR_SYSTEM),
    ]


@pytest.fixture
def mock_provider_factory():
    """Factory for mock market data providers."""
    def _create(books=None, failing=(), delay=0.0, gate=None):
        return MockMarketDataProvider(books=books, failing=failing, delay=delay, gate=gate)
    return _create
