"""
ESI market order client.

Downloads the regional order book of one item type, following the
``X-Pages`` pagination header, and maps transport/HTTP failures onto the
MarketDataError hierarchy so callers can tell transient from permanent.
"""

import asyncio
from typing import List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from core.config.settings import Settings
from core.logging import get_logger
from core.trading.models import MarketOrder
from core.utils.exceptions import (
    MarketDataAPIError,
    MarketDataConnectionError,
    MarketDataDecodingError,
    MarketDataError,
    MarketDataRateLimitError,
    get_retry_delay,
    is_retryable_error,
)
from .cache import MarketOrderCache

_orders_adapter = TypeAdapter(List[MarketOrder])

RATE_LIMIT_STATUSES = {420, 429}


class EsiMarketClient:
    """Market data provider backed by the public ESI market endpoint."""

    def __init__(self, settings: Settings, cache: Optional[MarketOrderCache] = None,
                 http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.cache = cache
        self._http_client = http_client
        self._owns_client = http_client is None
        self.logger = get_logger(__name__, component="esi_market_client")

    async def start(self):
        """Open the HTTP client and prepare the cache"""
        if self._http_client is None:
            md = self.settings.market_data
            self._http_client = httpx.AsyncClient(
                base_url=md.base_url,
                timeout=httpx.Timeout(md.request_timeout_seconds),
                headers={"User-Agent": md.user_agent, "Accept": "application/json"},
            )
            self._owns_client = True
        if self.cache is not None:
            await self.cache.initialize()

    async def close(self):
        """Close the HTTP client if this instance created it"""
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def fetch_order_book(self, item_id: int, region_id: int,
                               force_refresh: bool = False) -> List[MarketOrder]:
        """
        Fetch every order for ``item_id`` in ``region_id``.

        Args:
            item_id: Item type ID
            region_id: Region whose order book is downloaded
            force_refresh: Skip the cache lookup (the result is still cached)

        Returns:
            All buy and sell orders in the region

        Raises:
            MarketDataError: When the book cannot be fetched after retries
            MarketDataDecodingError: When the payload is not a list of orders
        """
        if self.cache is not None and not force_refresh:
            cached = await self.cache.get_orders(item_id, region_id)
            if cached is not None:
                return cached

        orders = await self._fetch_with_retry(item_id, region_id)

        if self.cache is not None:
            await self.cache.save_orders(item_id, region_id, orders)
        return orders

    async def _fetch_with_retry(self, item_id: int, region_id: int) -> List[MarketOrder]:
        md = self.settings.market_data
        attempt = 0
        while True:
            try:
                return await self._fetch_all_pages(item_id, region_id)
            except MarketDataError as e:
                e.retry_count = attempt
                e.max_retries = md.max_retries
                e.retryable = e.retryable and attempt < md.max_retries
                if not is_retryable_error(e):
                    raise
                delay = get_retry_delay(e, base_delay=md.retry_base_delay)
                self.logger.warning(
                    "Retrying market order fetch",
                    item_id=item_id,
                    region_id=region_id,
                    attempt=attempt + 1,
                    delay_seconds=delay,
                    error=str(e),
                )
                await asyncio.sleep(delay)
                attempt += 1

    async def _fetch_all_pages(self, item_id: int, region_id: int) -> List[MarketOrder]:
        orders, total_pages = await self._fetch_page(item_id, region_id, page=1)
        for page in range(2, total_pages + 1):
            page_orders, _ = await self._fetch_page(item_id, region_id, page=page)
            orders.extend(page_orders)

        self.logger.debug("Fetched market orders", item_id=item_id, region_id=region_id,
                          orders=len(orders), pages=total_pages)
        return orders

    async def _fetch_page(self, item_id: int, region_id: int, page: int):
        if self._http_client is None:
            await self.start()

        params = {
            "type_id": item_id,
            "order_type": "all",
            "datasource": self.settings.market_data.datasource,
            "page": page,
        }
        url = f"/markets/{region_id}/orders/"
        try:
            response = await self._http_client.get(url, params=params)
        except httpx.TimeoutException as e:
            raise MarketDataConnectionError(
                f"Timed out fetching orders for item {item_id}",
                item_id=item_id, region_id=region_id,
            ) from e
        except httpx.TransportError as e:
            raise MarketDataConnectionError(
                f"Transport error fetching orders for item {item_id}: {e}",
                item_id=item_id, region_id=region_id,
            ) from e

        if response.status_code in RATE_LIMIT_STATUSES:
            raise MarketDataRateLimitError(
                f"Rate limited fetching orders for item {item_id}",
                status_code=response.status_code,
                retry_after=_parse_retry_after(response.headers.get("Retry-After")),
                response_text=response.text,
                item_id=item_id, region_id=region_id,
            )
        if response.status_code != 200:
            raise MarketDataAPIError(
                f"HTTP {response.status_code} fetching orders for item {item_id}",
                status_code=response.status_code,
                response_text=response.text,
                item_id=item_id, region_id=region_id,
            )

        try:
            orders = _orders_adapter.validate_json(response.content)
        except PydanticValidationError as e:
            raise MarketDataDecodingError(
                f"Invalid order payload for item {item_id}", item_id=item_id,
                details={"errors": e.error_count()},
            ) from e

        try:
            total_pages = int(response.headers.get("X-Pages", "1"))
        except ValueError:
            total_pages = 1
        return orders, max(total_pages, 1)


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None
