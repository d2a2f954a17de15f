from .aggregator import aggregate_valuations
from .calculator import (
    calculate_average_price,
    calculate_item_valuation,
    calculate_unit_price,
    consume_liquidity,
    filter_side,
)
from .fetcher import OrderBookFetcher
from .models import ItemDemand, ItemValuation, OrderSide, PortfolioValuation, PriceQuote
from .normalizer import normalize_bundle, to_demands
from .presenter import DiscountAdapter, apply_discount, parse_discount_input
from .service import ValuationService

__all__ = [
    "aggregate_valuations",
    "calculate_average_price",
    "calculate_item_valuation",
    "calculate_unit_price",
    "consume_liquidity",
    "filter_side",
    "OrderBookFetcher",
    "ItemDemand",
    "ItemValuation",
    "OrderSide",
    "PortfolioValuation",
    "PriceQuote",
    "normalize_bundle",
    "to_demands",
    "DiscountAdapter",
    "apply_discount",
    "parse_discount_input",
    "ValuationService",
]
