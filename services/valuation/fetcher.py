"""
Bounded concurrent order book fetching.

The coordinator keeps at most ``concurrency`` fetches in flight and starts
the next pending item as soon as one finishes. Fetch tasks only return
their result; the coordinator is the single writer of the result map.
"""

import asyncio
import time
from collections import deque
from typing import Dict, Iterable, List, Set, Tuple

from core.logging import get_logger
from core.trading.interfaces import MarketDataProvider
from core.trading.models import MarketOrder
from core.utils.exceptions import create_error_context

DEFAULT_MAX_CONCURRENCY = 10


class OrderBookFetcher:
    """Fetches order books for many items with bounded concurrency."""

    def __init__(self, provider: MarketDataProvider, max_concurrency: int = DEFAULT_MAX_CONCURRENCY):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.provider = provider
        self.max_concurrency = max_concurrency
        self.logger = get_logger(__name__, component="order_book_fetcher")

    def concurrency_for(self, item_count: int) -> int:
        return max(1, min(self.max_concurrency, item_count))

    async def fetch_all(self, item_ids: Iterable[int], region_id: int,
                        force_refresh: bool = False) -> Dict[int, List[MarketOrder]]:
        """
        Fetch the order book of every distinct item.

        A failed fetch is logged and recorded as an empty book; it never
        aborts the batch. The map is returned only after every fetch has
        finished. If this coroutine is cancelled, all in-flight fetches are
        cancelled and awaited before the cancellation propagates.

        Returns:
            Mapping of every requested item ID to its (possibly empty) orders
        """
        pending = deque(dict.fromkeys(int(i) for i in item_ids))
        if not pending:
            return {}

        total = len(pending)
        concurrency = self.concurrency_for(total)
        self.logger.info("Loading order books", region_id=region_id, items=total,
                         concurrency=concurrency)
        started = time.monotonic()

        results: Dict[int, List[MarketOrder]] = {}
        failed = 0
        in_flight: Set[asyncio.Task] = set()

        def launch_next():
            item_id = pending.popleft()
            task = asyncio.create_task(
                self._fetch_one(item_id, region_id, force_refresh),
                name=f"order-book-{item_id}",
            )
            in_flight.add(task)

        try:
            for _ in range(concurrency):
                launch_next()

            while in_flight:
                done, _ = await asyncio.wait(in_flight, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    in_flight.discard(task)
                    item_id, orders, ok = task.result()
                    results[item_id] = orders
                    if not ok:
                        failed += 1
                    if pending:
                        launch_next()
        finally:
            if in_flight:
                for task in in_flight:
                    task.cancel()
                await asyncio.gather(*in_flight, return_exceptions=True)
                self.logger.info("Order book loading cancelled", region_id=region_id,
                                 completed=len(results), items=total)

        self.logger.info(
            "Order books loaded",
            region_id=region_id,
            loaded=total - failed,
            failed=failed,
            items=total,
            duration_seconds=round(time.monotonic() - started, 3),
        )
        return results

    async def _fetch_one(self, item_id: int, region_id: int,
                         force_refresh: bool) -> Tuple[int, List[MarketOrder], bool]:
        try:
            orders = await self.provider.fetch_order_book(item_id, region_id, force_refresh)
        except Exception as e:
            self.logger.warning(
                "Order book fetch failed, treating as empty",
                **create_error_context(
                    e, "fetch_order_book", {"item_id": item_id, "region_id": region_id}
                ),
            )
            return item_id, [], False
        return item_id, list(orders), True
