from typing import Iterable

from .models import ItemValuation, PortfolioValuation, ZERO


def aggregate_valuations(valuations: Iterable[ItemValuation]) -> PortfolioValuation:
    """
    Sum per-item valuations into one portfolio valuation.

    The mid total is exactly half the sum of the buy and sell totals. The
    portfolio is flagged as soon as any item is short on either side.
    """
    items = list(valuations)
    total_buy = sum((v.buy_execution_total for v in items), ZERO)
    total_sell = sum((v.sell_execution_total for v in items), ZERO)

    short_buy = any(v.has_unmet_buy for v in items)
    short_sell = any(v.has_unmet_sell for v in items)

    return PortfolioValuation(
        total_buy_execution=total_buy,
        total_sell_execution=total_sell,
        total_mid_execution=(total_buy + total_sell) / 2,
        has_insufficient_liquidity=short_buy or short_sell,
        has_insufficient_buy_liquidity=short_buy,
        has_insufficient_sell_liquidity=short_sell,
        items_without_orders=sum(1 for v in items if v.is_unpriced),
        items=items,
    )
