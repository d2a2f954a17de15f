from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MarketOrder(BaseModel):
    """
    One outstanding order in a regional order book, as served by ESI.

    Only price, volume_remain, is_buy_order and system_id take part in
    valuation; the remaining fields are carried so cached payloads
    round-trip unchanged.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    price: Decimal = Field(gt=0)
    volume_remain: int = Field(ge=0)
    is_buy_order: bool
    system_id: int

    order_id: Optional[int] = None
    type_id: Optional[int] = None
    location_id: Optional[int] = None
    volume_total: Optional[int] = None
    min_volume: Optional[int] = None
    duration: Optional[int] = None
    issued: Optional[datetime] = None
    range: Optional[str] = None
