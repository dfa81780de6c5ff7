"""
Execution layer: legs and order classes, chain windows, strike selection and pricing.
"""

from .contracts import (
    Back,
    Leg,
    OrderClass,
    Prompter,
    Refresh,
    Resolved,
    allowed_sides,
    classify,
    next_order_class,
    parse_quantity,
    side_sign,
)
from .chain_window import ChainWindow, StrikePair, window_chain
from .selectors import (
    StrikeSelector,
    build_strategy,
    find_by_delta,
    list_strikes,
    lookup_entry,
    match_manual_strike,
)
from .pricing import PriceLevel, PricingQuote, PricingResolver, net_quote, single_quote

__all__ = [
    "Back",
    "Leg",
    "OrderClass",
    "Prompter",
    "Refresh",
    "Resolved",
    "allowed_sides",
    "classify",
    "next_order_class",
    "parse_quantity",
    "side_sign",
    "ChainWindow",
    "StrikePair",
    "window_chain",
    "StrikeSelector",
    "build_strategy",
    "find_by_delta",
    "list_strikes",
    "lookup_entry",
    "match_manual_strike",
    "PriceLevel",
    "PricingQuote",
    "PricingResolver",
    "net_quote",
    "single_quote",
]
