"""
Pricing: bid/mid/ask for a single instrument, or the net debit/credit across all legs.

Every refresh re-fetches quotes leg by leg and recomputes from scratch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Optional, Sequence, Tuple

from ..config.schemas import PricingConfig
from ..data.models import MarketDataProvider, Quote
from .contracts import Leg, OrderClass, is_buy

logger = logging.getLogger(__name__)

PriceLabel = Literal["debit", "credit"]


@dataclass(frozen=True)
class PriceLevel:
    """Signed price; negative means credit."""

    value: float

    @property
    def label(self) -> PriceLabel:
        return "credit" if self.value < 0 else "debit"

    @property
    def amount(self) -> float:
        return abs(self.value)


@dataclass(frozen=True)
class PricingQuote:
    bid: PriceLevel
    ask: PriceLevel
    mid: Optional[PriceLevel] = None
    net: bool = False  # True for multi-leg quotes, where debit/credit labels apply
    swapped: bool = False


def mid_price(bid: float, ask: float, decimals: int = 2) -> float:
    return round((bid + ask) / 2, decimals)


def single_quote(quote: Quote, *, include_mid: bool = False, decimals: int = 2) -> PricingQuote:
    """Bid/ask straight from the latest quote."""
    mid = PriceLevel(mid_price(quote.bid, quote.ask, decimals)) if include_mid else None
    return PricingQuote(bid=PriceLevel(float(quote.bid)), ask=PriceLevel(float(quote.ask)), mid=mid)


def net_quote(
    legs: Sequence[Tuple[str, Quote]],
    *,
    include_mid: bool = True,
    decimals: int = 2,
) -> PricingQuote:
    """
    Net price across (side, quote) pairs.

    Buy legs add bid to bid and ask to ask; sell legs subtract ask from bid and bid from ask.
    A negative summed bid swaps bid and ask. Mid is taken from the swapped values.
    """
    bid = 0.0
    ask = 0.0
    for side, quote in legs:
        if is_buy(side):
            bid += quote.bid
            ask += quote.ask
        else:
            bid -= quote.ask
            ask -= quote.bid

    # float sums such as 1.00 - 0.60 carry representation noise
    bid = round(bid, 10)
    ask = round(ask, 10)

    swapped = bid < 0
    if swapped:
        bid, ask = ask, bid

    mid = PriceLevel(mid_price(bid, ask, decimals)) if include_mid else None
    return PricingQuote(bid=PriceLevel(bid), ask=PriceLevel(ask), mid=mid, net=True, swapped=swapped)


class PricingResolver:
    """Re-quotes the legs of an order through a MarketDataProvider."""

    def __init__(self, provider: MarketDataProvider, config: Optional[PricingConfig] = None) -> None:
        self.provider = provider
        self.config = config or PricingConfig()

    def _leg_quote(self, symbol: str, leg: Leg) -> Quote:
        return self.provider.get_quote(leg.option_symbol or symbol)

    def refresh(self, symbol: str, legs: Sequence[Leg], order_class: OrderClass) -> PricingQuote:
        """Fetch fresh quotes for the order's instruments and price them."""
        if not legs:
            raise ValueError("Cannot price an order without legs")

        decimals = self.config.mid_decimals
        if order_class in ("equity", "option"):
            quote = self._leg_quote(symbol, legs[0])
            result = single_quote(quote, include_mid=order_class == "option", decimals=decimals)
        else:
            quotes = [(leg.side, self._leg_quote(symbol, leg)) for leg in legs]
            result = net_quote(quotes, include_mid=True, decimals=decimals)

        logger.debug(
            f"priced class={order_class} bid={result.bid.value} ask={result.ask.value} "
            f"mid={result.mid.value if result.mid else None} swapped={result.swapped}"
        )
        return result
