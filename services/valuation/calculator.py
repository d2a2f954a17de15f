"""
Liquidity consumption.

Estimates what a quantity of an item would fetch (or cost) if executed
immediately against the standing orders at one hub, walking price levels
from the best price outward.
"""

from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from core.trading.models import MarketOrder
from .models import ItemValuation, OrderSide, PriceQuote, ZERO


def filter_side(orders: Iterable[MarketOrder], side: OrderSide,
                system_id: Optional[int] = None) -> List[MarketOrder]:
    """
    Orders of one side, best price first.

    Buy orders are sorted by price descending, sell orders ascending.
    ``system_id`` of None keeps orders from the whole region.
    """
    is_buy = side == OrderSide.BUY
    selected = [
        order for order in orders
        if order.is_buy_order == is_buy and (system_id is None or order.system_id == system_id)
    ]
    selected.sort(key=lambda order: order.price, reverse=is_buy)
    return selected


def consume_liquidity(sorted_orders: Sequence[MarketOrder], quantity: int) -> Tuple[Decimal, int]:
    """
    Walk pre-sorted orders until ``quantity`` is filled or the book runs out.

    Returns:
        (total value of the filled units, quantity left unfilled)
    """
    remaining = quantity
    total = ZERO
    for order in sorted_orders:
        if remaining <= 0:
            break
        filled = min(remaining, order.volume_remain)
        total += filled * order.price
        remaining -= filled
    return total, max(remaining, 0)


def calculate_item_valuation(item_id: int, orders: Iterable[MarketOrder], quantity: int,
                             hub_system_id: int) -> ItemValuation:
    """
    Value ``quantity`` units of one item against both sides of the hub's book.

    Revenue or cost from partially filled demand is kept; the unfilled part
    is reported as unmet quantity.
    """
    orders = list(orders)
    buy_total, unmet_buy = consume_liquidity(
        filter_side(orders, OrderSide.BUY, hub_system_id), quantity
    )
    sell_total, unmet_sell = consume_liquidity(
        filter_side(orders, OrderSide.SELL, hub_system_id), quantity
    )
    return ItemValuation(
        item_id=item_id,
        buy_execution_total=buy_total,
        sell_execution_total=sell_total,
        demanded_quantity=quantity,
        unmet_buy_quantity=unmet_buy,
        unmet_sell_quantity=unmet_sell,
    )


def calculate_unit_price(orders: Iterable[MarketOrder], side: OrderSide,
                         quantity: Optional[int] = None,
                         system_id: Optional[int] = None) -> PriceQuote:
    """
    Per-unit price for one side of a book.

    Without a quantity this is the best price. With a quantity it is the
    average price of the units that could be filled; ``insufficient_stock``
    is set when the book cannot fill all of them, and the price is None when
    nothing fills at all.
    """
    sorted_orders = filter_side(orders, side, system_id)
    if not sorted_orders:
        return PriceQuote(price=None, insufficient_stock=True)

    if quantity is None or quantity <= 0:
        return PriceQuote(price=sorted_orders[0].price, insufficient_stock=False)

    total, unmet = consume_liquidity(sorted_orders, quantity)
    filled = quantity - unmet
    if filled == 0:
        return PriceQuote(price=None, insufficient_stock=True)
    return PriceQuote(price=total / filled, insufficient_stock=unmet > 0)


def calculate_average_price(orders: Iterable[MarketOrder],
                            system_id: Optional[int] = None) -> Decimal:
    """Mean of best bid and best ask, or whichever side exists, else zero."""
    orders = list(orders)
    buy = calculate_unit_price(orders, OrderSide.BUY, system_id=system_id).price
    sell = calculate_unit_price(orders, OrderSide.SELL, system_id=system_id).price
    if buy is not None and sell is not None:
        return (buy + sell) / 2
    if sell is not None:
        return sell
    if buy is not None:
        return buy
    return ZERO
