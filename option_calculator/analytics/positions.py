"""
Account positions valued at current quotes and grouped by underlying and instrument kind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..data.models import InstrumentKind, MarketDataProvider, Position, Quote
from ..data.symbols import parse_option_symbol

logger = logging.getLogger(__name__)

CONTRACT_MULTIPLIER = 100


@dataclass(frozen=True)
class PositionSummary:
    """One row of the positions report: all lots of an underlying of one kind."""

    symbol: str
    kind: InstrumentKind
    cost_basis: float
    quantity: float
    value: float

    @property
    def gain(self) -> float:
        return self.value - self.cost_basis

    @property
    def gain_percent(self) -> Optional[float]:
        """Gain relative to |cost basis| (0.10 = 10%); None without a cost basis."""
        if self.cost_basis == 0:
            return None
        return self.gain / abs(self.cost_basis)


def position_value(quote: Quote, quantity: float) -> float:
    """Options at mid x 100 per contract, equities at last."""
    if quote.kind == "option":
        return (quote.bid + quote.ask) / 2 * CONTRACT_MULTIPLIER * quantity
    return quote.last * quantity


def _underlying(quote: Quote) -> str:
    if quote.kind != "option":
        return quote.symbol
    if quote.underlying:
        return quote.underlying
    return parse_option_symbol(quote.symbol).underlying


def summarize_positions(provider: MarketDataProvider, positions: Sequence[Position]) -> List[PositionSummary]:
    """
    Quote every position and fold the lots into one row per (underlying, kind), in the order
    first seen. Cost basis and value are summed; the quantity is the smallest lot quantity,
    which is the number of complete spreads for a multi-leg option position.
    """
    groups: Dict[Tuple[str, InstrumentKind], List[Tuple[Position, float]]] = {}
    for position in positions:
        quote = provider.get_quote(position.symbol)
        value = position_value(quote, position.quantity)
        groups.setdefault((_underlying(quote), quote.kind), []).append((position, value))

    summaries = []
    for (symbol, kind), lots in groups.items():
        summaries.append(
            PositionSummary(
                symbol=symbol,
                kind=kind,
                cost_basis=sum(p.cost_basis for p, _ in lots),
                quantity=min(p.quantity for p, _ in lots),
                value=sum(v for _, v in lots),
            )
        )
    logger.info(f"positions: {len(positions)} lots in {len(summaries)} groups")
    return summaries
