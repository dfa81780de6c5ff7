"""
Leg accumulation: the in-progress order, its legs and its running order class.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional, Sequence, Tuple, Union

import pandas as pd

from ..data.models import ChainEntry, InstrumentKind, MarketDataProvider, OptionType
from ..errors import InvalidInput
from ..execution.contracts import (
    Leg,
    OrderClass,
    Prompter,
    Resolved,
    allowed_sides,
    next_order_class,
    parse_quantity,
)
from ..execution.selectors import StrikeSelector

logger = logging.getLogger(__name__)


class OrderBuilder:
    """
    Explicit builder passed through every step of order construction.

    Legs are append-only; the order class is updated after every addition and never
    downgrades once it reaches combo.
    """

    def __init__(self, symbol: str) -> None:
        symbol = str(symbol).strip().upper()
        if not symbol:
            raise InvalidInput("A symbol is required")
        self.symbol = symbol
        self._legs: List[Leg] = []
        self._order_class: Optional[OrderClass] = None

    @property
    def legs(self) -> Tuple[Leg, ...]:
        return tuple(self._legs)

    @property
    def order_class(self) -> Optional[OrderClass]:
        return self._order_class

    def current_class(self) -> Optional[OrderClass]:
        return self._order_class

    def add_leg(
        self,
        kind: InstrumentKind,
        side: str,
        quantity: Union[int, str],
        contract: Optional[ChainEntry] = None,
    ) -> Leg:
        """Validate and append one leg; raises InvalidInput without changing state on failure."""
        qty = quantity if isinstance(quantity, int) and not isinstance(quantity, bool) else parse_quantity(quantity)
        leg = Leg(kind=kind, side=side, quantity=qty, contract=contract)

        previous = self._order_class
        self._legs.append(leg)
        self._order_class = next_order_class(previous, kind)
        if previous != self._order_class:
            logger.info(f"order class {previous} -> {self._order_class} after leg {len(self._legs) - 1} ({kind} {leg.side})")
        return leg

    @property
    def sides(self) -> List[str]:
        return [leg.side for leg in self._legs]

    @property
    def quantities(self) -> List[int]:
        return [leg.quantity for leg in self._legs]

    @property
    def option_symbols(self) -> List[Optional[str]]:
        """Aligned with legs; None for equity legs."""
        return [leg.option_symbol for leg in self._legs]

    @property
    def option_legs(self) -> List[Leg]:
        return [leg for leg in self._legs if leg.kind == "option"]

    def __len__(self) -> int:
        return len(self._legs)


def match_expiration(expirations: Sequence[date], raw: str) -> Optional[date]:
    """
    Parse a typed expiration and require an exact match in the broker's list.

    Returns None for the literal 'list' (the caller then offers the full list).
    """
    text = str(raw).strip()
    if text.lower() == "list":
        return None
    try:
        wanted = pd.to_datetime(text).date()
    except (TypeError, ValueError):
        raise InvalidInput("Please enter a valid date.") from None
    if wanted not in set(expirations):
        raise InvalidInput("That expiration date does not exist.")
    return wanted


class LegCollector:
    """Gathers one leg interactively and hands it to the builder."""

    def __init__(self, provider: MarketDataProvider, prompter: Prompter, selector: StrikeSelector) -> None:
        self.provider = provider
        self.prompter = prompter
        self.selector = selector

    def choose_kind(self) -> InstrumentKind:
        return self.prompter.select("Security type", [("equity", "equity"), ("option", "option")]).value  # type: ignore[union-attr]

    def choose_side(self, kind: InstrumentKind) -> str:
        options = [(side.replace("_", " "), side) for side in allowed_sides(kind)]
        return self.prompter.select("Side", options).value  # type: ignore[union-attr]

    def choose_quantity(self, kind: InstrumentKind) -> int:
        question = "Contracts" if kind == "option" else "Shares"
        return self.prompter.ask(question, parse_quantity).value  # type: ignore[union-attr]

    def choose_expiration(self, symbol: str) -> date:
        expirations = list(self.provider.get_option_expirations(symbol, include_all_roots=True))
        typed = self.prompter.ask(
            'Expiration (enter "list" to list all expirations)',
            lambda raw: match_expiration(expirations, raw),
        )
        if isinstance(typed, Resolved) and typed.value is not None:
            return typed.value
        listed = self.prompter.select("Expiration", [(d.isoformat(), d) for d in expirations])
        return listed.value  # type: ignore[union-attr]

    def choose_option_type(self) -> OptionType:
        return self.prompter.select("Option type", [("call", "call"), ("put", "put")]).value  # type: ignore[union-attr]

    def collect(self, builder: OrderBuilder) -> Leg:
        kind = self.choose_kind()
        side = self.choose_side(kind)
        quantity = self.choose_quantity(kind)
        contract = None
        if kind == "option":
            expiration = self.choose_expiration(builder.symbol)
            option_type = self.choose_option_type()
            contract = self.selector.select(builder.symbol, expiration, option_type)
        return builder.add_leg(kind, side, quantity, contract)
