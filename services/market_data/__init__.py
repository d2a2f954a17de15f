from .cache import MarketOrderCache
from .client import EsiMarketClient

__all__ = ["MarketOrderCache", "EsiMarketClient"]
