import asyncio
import json
import time
from pathlib import Path
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from core.config.settings import Settings
from core.logging import get_logger
from core.trading.models import MarketOrder

_orders_adapter = TypeAdapter(List[MarketOrder])


class MarketOrderCache:
    """
    Manages the storage and retrieval of regional order books on disk.

    One JSON file per (type_id, region_id) holding ``{"timestamp", "data"}``.
    Entries older than the configured TTL are treated as misses.
    """
    def __init__(self, settings: Settings, cache_dir: Optional[Path] = None, clock=time.time):
        self.settings = settings
        self.cache_dir = Path(cache_dir) if cache_dir is not None else settings.cache_dir
        self.ttl_seconds = settings.market_data.cache_ttl_seconds
        self._clock = clock
        self._initialized = False
        self.logger = get_logger(__name__, component="market_order_cache")

    async def initialize(self):
        """Create the cache directory"""
        await asyncio.to_thread(self.cache_dir.mkdir, parents=True, exist_ok=True)
        self._initialized = True

    def _get_path(self, type_id: int, region_id: int) -> Path:
        """Generates a standardized cache file path for an order book."""
        return self.cache_dir / f"market_orders_{type_id}_{region_id}.json"

    async def get_orders(self, type_id: int, region_id: int) -> Optional[List[MarketOrder]]:
        """
        Retrieves an order book from the cache.

        Returns:
            The cached orders if present and fresh, otherwise None.
        """
        path = self._get_path(type_id, region_id)
        try:
            raw = await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError:
            return None
        except OSError as e:
            self.logger.warning("Failed to read order cache", path=str(path), error=str(e))
            return None

        try:
            payload = json.loads(raw)
            timestamp = float(payload["timestamp"])
            orders = _orders_adapter.validate_python(payload["data"])
        except (ValueError, KeyError, TypeError, PydanticValidationError) as e:
            self.logger.warning("Discarding unreadable order cache entry", path=str(path),
                                error=str(e))
            return None

        if timestamp + self.ttl_seconds <= self._clock():
            self.logger.debug("Order cache entry expired", type_id=type_id, region_id=region_id)
            return None

        self.logger.debug("Using cached market orders", type_id=type_id, region_id=region_id,
                          orders=len(orders))
        return orders

    async def save_orders(self, type_id: int, region_id: int, orders: List[MarketOrder]):
        """
        Saves an order book to the cache. Write failures are logged, not raised.
        """
        if not self._initialized:
            await self.initialize()

        path = self._get_path(type_id, region_id)
        payload = {
            "timestamp": self._clock(),
            "data": _orders_adapter.dump_python(orders, mode="json"),
        }
        tmp_path = path.with_suffix(".json.tmp")
        try:
            await asyncio.to_thread(tmp_path.write_text, json.dumps(payload), encoding="utf-8")
            await asyncio.to_thread(tmp_path.replace, path)
        except OSError as e:
            self.logger.error("Failed to save order cache", path=str(path), error=str(e))
            return
        self.logger.debug("Market orders cached", type_id=type_id, region_id=region_id,
                          orders=len(orders))

    async def clear(self):
        """Removes every cached order book."""
        def _clear():
            if not self.cache_dir.exists():
                return 0
            removed = 0
            for path in self.cache_dir.glob("market_orders_*.json"):
                path.unlink(missing_ok=True)
                removed += 1
            return removed

        removed = await asyncio.to_thread(_clear)
        self.logger.info("Order cache cleared", removed=removed)
        return removed
