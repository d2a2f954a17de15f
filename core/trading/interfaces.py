from __future__ import annotations

from typing import List, Protocol, runtime_checkable

from core.trading.models import MarketOrder


@runtime_checkable
class MarketDataProvider(Protocol):
    """Source of regional order books.

    Implementations may raise any MarketDataError subclass for a failed
    fetch; callers decide whether the failure is fatal.
    """

    async def fetch_order_book(
        self, item_id: int, region_id: int, force_refresh: bool = False
    ) -> List[MarketOrder]:
        ...
