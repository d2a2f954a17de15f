"""
Shared market core: order models, the provider interface and trade hubs.

This package hosts provider-agnostic types used by the market data client
and the valuation engine.
"""

from .hubs import TradeHub, TRADE_HUBS, DEFAULT_HUB, resolve_trade_hub
from .interfaces import MarketDataProvider
from .models import MarketOrder

__all__ = [
    "TradeHub",
    "TRADE_HUBS",
    "DEFAULT_HUB",
    "resolve_trade_hub",
    "MarketDataProvider",
    "MarketOrder",
]
