# Valuation Engine Models
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

ZERO = Decimal("0")


class OrderSide(str, Enum):
    """Which standing orders a bundle is executed against"""
    BUY = "buy"    # standing buy orders, best bid first
    SELL = "sell"  # standing sell orders, cheapest ask first


class ItemDemand(BaseModel):
    """Requested quantity of one item"""
    model_config = ConfigDict(frozen=True)

    item_id: int
    quantity: int = Field(ge=0)


class ItemValuation(BaseModel):
    """Executable totals for one item against one hub's order book"""
    model_config = ConfigDict(frozen=True)

    item_id: int
    buy_execution_total: Decimal = ZERO
    sell_execution_total: Decimal = ZERO
    demanded_quantity: int = 0
    unmet_buy_quantity: int = 0
    unmet_sell_quantity: int = 0

    @property
    def has_unmet_buy(self) -> bool:
        return self.unmet_buy_quantity > 0

    @property
    def has_unmet_sell(self) -> bool:
        return self.unmet_sell_quantity > 0

    @property
    def is_unpriced(self) -> bool:
        """Demand exists but neither side of the book filled any of it."""
        return (
            self.demanded_quantity > 0
            and self.unmet_buy_quantity == self.demanded_quantity
            and self.unmet_sell_quantity == self.demanded_quantity
        )


class PortfolioValuation(BaseModel):
    """
    Bundle-level valuation.

    Insufficiency is reported for both directions; which one matters depends
    on whether the caller is selling into bids or buying from asks.
    """
    model_config = ConfigDict(frozen=True)

    total_buy_execution: Decimal = ZERO
    total_sell_execution: Decimal = ZERO
    total_mid_execution: Decimal = ZERO
    has_insufficient_liquidity: bool = False

    has_insufficient_buy_liquidity: bool = False
    has_insufficient_sell_liquidity: bool = False
    items_without_orders: int = 0
    items: List[ItemValuation] = Field(default_factory=list)
    discount_percent: Optional[int] = None


class PriceQuote(BaseModel):
    """Per-unit price read off one side of an order book"""
    model_config = ConfigDict(frozen=True)

    price: Optional[Decimal] = None
    insufficient_stock: bool = False
