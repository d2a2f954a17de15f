# Session-scoped DI container for the valuation engine
from dependency_injector import containers, providers

from core.config.settings import Settings
from services.market_data.cache import MarketOrderCache
from services.market_data.client import EsiMarketClient
from services.valuation.fetcher import OrderBookFetcher
from services.valuation.presenter import DiscountAdapter
from services.valuation.service import ValuationService


def _build_cache(settings: Settings):
    if not settings.market_data.cache_enabled:
        return None
    return MarketOrderCache(settings=settings)


class AppContainer(containers.DeclarativeContainer):
    """
    Application dependency injection container.

    Singletons here are scoped to the container instance: create one
    container per session and call ``valuation_service().stop()`` when done.
    """

    # Configuration
    settings = providers.Singleton(Settings)

    # Market data
    market_order_cache = providers.Singleton(_build_cache, settings=settings)
    market_data_provider = providers.Singleton(
        EsiMarketClient,
        settings=settings,
        cache=market_order_cache,
    )

    # Valuation engine
    order_book_fetcher = providers.Singleton(
        OrderBookFetcher,
        provider=market_data_provider,
        max_concurrency=settings.provided.valuation.max_concurrency,
    )
    discount_adapter = providers.Singleton(
        DiscountAdapter,
        cap=settings.provided.valuation.discount_cap_percent,
        initial_percent=settings.provided.valuation.default_discount_percent,
    )
    valuation_service = providers.Singleton(
        ValuationService,
        settings=settings,
        provider=market_data_provider,
        fetcher=order_book_fetcher,
        discount_adapter=discount_adapter,
    )
