"""
Data layer: typed models, provider protocols, symbol parsing, payload normalization
"""

from .models import (
    ChainEntry,
    Greeks,
    GREEK_NAMES,
    InstrumentKind,
    MarketDataProvider,
    OptionType,
    OrderGateway,
    OrderReceipt,
    Position,
    PreviewResult,
    Quote,
)
from .symbols import OptionSymbol, parse_option_symbol, format_option_symbol, is_option_symbol
from .normalize import normalize_chain, chain_entries, parse_chain, chain_frame, parse_quote

__all__ = [
    "ChainEntry",
    "Greeks",
    "GREEK_NAMES",
    "InstrumentKind",
    "MarketDataProvider",
    "OptionType",
    "OrderGateway",
    "OrderReceipt",
    "Position",
    "PreviewResult",
    "Quote",
    "OptionSymbol",
    "parse_option_symbol",
    "format_option_symbol",
    "is_option_symbol",
    "normalize_chain",
    "chain_entries",
    "parse_chain",
    "chain_frame",
    "parse_quote",
]
