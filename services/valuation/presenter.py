"""
Presentation-time discount.

Scales the three bundle totals by a user-chosen percentage. The percentage
never influences order consumption.
"""

from decimal import Decimal
from typing import Optional

from core.logging import get_logger
from core.utils.exceptions import InvalidDiscountError
from .models import PortfolioValuation

DEFAULT_DISCOUNT_CAP = 99999
DEFAULT_DISCOUNT_PERCENT = 100
MAX_DISCOUNT_DIGITS = 5


def parse_discount_input(text: str) -> int:
    """
    Parse raw discount input.

    Raises:
        InvalidDiscountError: Unless the input is 1 to 5 ASCII digits with a
            value greater than zero
    """
    raw = (text or "").strip()
    if not raw or not (raw.isascii() and raw.isdigit()):
        raise InvalidDiscountError("Discount must contain digits only", value=text)
    if len(raw) > MAX_DISCOUNT_DIGITS:
        raise InvalidDiscountError(
            f"Discount must have at most {MAX_DISCOUNT_DIGITS} digits", value=text
        )
    percent = int(raw)
    if percent <= 0:
        raise InvalidDiscountError("Discount must be greater than zero", value=text)
    return percent


def discount_multiplier(percent: int, cap: int = DEFAULT_DISCOUNT_CAP) -> Decimal:
    return Decimal(min(cap, percent)) / 100


def apply_discount(valuation: PortfolioValuation, percent: int,
                   cap: int = DEFAULT_DISCOUNT_CAP) -> PortfolioValuation:
    """Return a copy of ``valuation`` with the three totals scaled."""
    multiplier = discount_multiplier(percent, cap)
    return valuation.model_copy(update={
        "total_buy_execution": valuation.total_buy_execution * multiplier,
        "total_sell_execution": valuation.total_sell_execution * multiplier,
        "total_mid_execution": valuation.total_mid_execution * multiplier,
        "discount_percent": min(cap, percent),
    })


class DiscountAdapter:
    """Holds the last accepted discount percentage."""

    def __init__(self, cap: int = DEFAULT_DISCOUNT_CAP,
                 initial_percent: int = DEFAULT_DISCOUNT_PERCENT):
        self.cap = cap
        self.percent = initial_percent
        self.logger = get_logger(__name__, component="discount_adapter")

    @property
    def effective_percent(self) -> int:
        return min(self.cap, self.percent)

    @property
    def multiplier(self) -> Decimal:
        return discount_multiplier(self.percent, self.cap)

    def submit(self, text: str) -> bool:
        """
        Accept new discount input. Invalid input keeps the previous value.

        Returns:
            True if the input was accepted
        """
        try:
            self.percent = parse_discount_input(text)
        except InvalidDiscountError as e:
            self.logger.info("Discount input rejected", value=text, reason=e.message,
                             kept_percent=self.percent)
            return False
        return True

    def apply(self, valuation: PortfolioValuation,
              percent: Optional[int] = None) -> PortfolioValuation:
        return apply_discount(valuation, self.percent if percent is None else percent, self.cap)
