"""
Valuation Service - entry point of the portfolio valuation engine.
"""

import asyncio
from enum import Enum
from typing import Iterable, Optional, Union

from core.config.settings import Settings
from core.logging import get_logger
from core.logging.correlation import correlation_scope
from core.trading.hubs import TradeHub, resolve_trade_hub
from core.trading.interfaces import MarketDataProvider
from core.utils.exceptions import HubResolutionError
from .aggregator import aggregate_valuations
from .calculator import calculate_item_valuation
from .fetcher import OrderBookFetcher
from .models import PortfolioValuation
from .normalizer import BundleEntry, normalize_bundle
from .presenter import DiscountAdapter


class ServiceStatus(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class ValuationService:
    """
    Values item bundles against live order books at a trade hub.

    One instance is owned per session together with its provider; ``start``
    and ``stop`` open and close the provider's resources.
    """

    def __init__(self, settings: Settings, provider: MarketDataProvider,
                 fetcher: Optional[OrderBookFetcher] = None,
                 discount_adapter: Optional[DiscountAdapter] = None):
        self.settings = settings
        self.provider = provider
        self.fetcher = fetcher or OrderBookFetcher(
            provider, max_concurrency=settings.valuation.max_concurrency
        )
        self.discount_adapter = discount_adapter or DiscountAdapter(
            cap=settings.valuation.discount_cap_percent,
            initial_percent=settings.valuation.default_discount_percent,
        )
        self.status = ServiceStatus.STOPPED
        self.logger = get_logger(__name__, component="valuation_service")

    async def start(self):
        if self.status == ServiceStatus.RUNNING:
            return
        start = getattr(self.provider, "start", None)
        if start is not None:
            await start()
        self.status = ServiceStatus.RUNNING
        self.logger.info("Valuation service started")

    async def stop(self):
        if self.status == ServiceStatus.STOPPED:
            return
        close = getattr(self.provider, "close", None)
        if close is not None:
            await close()
        self.status = ServiceStatus.STOPPED
        self.logger.info("Valuation service stopped")

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()

    def resolve_hub(self, hub: Union[TradeHub, str, None]) -> TradeHub:
        """
        Raises:
            HubResolutionError: If a hub name is unknown
        """
        if isinstance(hub, TradeHub):
            return hub
        name = self.settings.valuation.default_hub if hub is None else hub
        resolved = resolve_trade_hub(name)
        if resolved is None:
            raise HubResolutionError(f"Unknown trade hub: {name!r}", hub=name)
        return resolved

    async def valuate(self, items: Iterable[BundleEntry],
                      hub: Union[TradeHub, str, None] = None,
                      discount_percent: Optional[int] = None,
                      force_refresh: Optional[bool] = None) -> PortfolioValuation:
        """
        Value a bundle of (item_id, quantity) pairs.

        Args:
            items: Bundle entries; repeated items are merged
            hub: TradeHub, hub name, or None for the configured default
            discount_percent: New discount to submit; when rejected the
                previously accepted discount is applied
            force_refresh: Bypass the provider cache (defaults to settings)

        Returns:
            The discounted portfolio valuation

        Raises:
            HubResolutionError: If the hub cannot be resolved
            ValidationError: If a quantity is negative
            asyncio.CancelledError: If the request is cancelled; no
                valuation is produced
        """
        trade_hub = self.resolve_hub(hub)
        demand = normalize_bundle(items)
        if force_refresh is None:
            force_refresh = self.settings.valuation.force_refresh

        with correlation_scope(hub=trade_hub.name) as request_id:
            self.logger.info("Valuation requested", items=len(demand),
                             region_id=trade_hub.region_id, system_id=trade_hub.system_id)
            try:
                books = await self.fetcher.fetch_all(
                    demand.keys(), trade_hub.region_id, force_refresh=force_refresh
                )
            except asyncio.CancelledError:
                self.logger.info("Valuation cancelled", request_id=request_id)
                raise

            valuations = [
                calculate_item_valuation(item_id, books.get(item_id, []), quantity,
                                         trade_hub.system_id)
                for item_id, quantity in demand.items()
            ]
            portfolio = aggregate_valuations(valuations)
            if discount_percent is not None:
                self.discount_adapter.submit(str(discount_percent))
            result = self.discount_adapter.apply(portfolio)

            log = self.logger.warning if result.has_insufficient_liquidity else self.logger.info
            log(
                "Valuation completed",
                total_buy=str(result.total_buy_execution),
                total_sell=str(result.total_sell_execution),
                total_mid=str(result.total_mid_execution),
                insufficient_liquidity=result.has_insufficient_liquidity,
                items_without_orders=result.items_without_orders,
                discount_percent=result.discount_percent,
            )
            return result
