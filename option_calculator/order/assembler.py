"""
Order assembly: order type and duration vocabularies, price/stop capture, net greeks and the
flat payload handed to preview and submission.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..config.schemas import PricingConfig
from ..data.models import GREEK_NAMES
from ..errors import InvalidInput
from ..execution.contracts import Leg, OrderClass, Prompter, Refresh, Resolved, side_sign
from ..execution.pricing import PricingQuote, PricingResolver
from ..execution.selectors import parse_number
from .builder import OrderBuilder

logger = logging.getLogger(__name__)


SINGLE_ORDER_TYPES: Tuple[str, ...] = ("market", "limit", "stop_limit", "stop")
MULTI_ORDER_TYPES: Tuple[str, ...] = ("market", "debit", "credit", "even")

PRICED_TYPES = frozenset({"limit", "stop_limit", "debit", "credit"})
STOP_TYPES = frozenset({"stop", "stop_limit"})

# menu label -> API value
DURATIONS: Tuple[Tuple[str, str], ...] = (
    ("day", "day"),
    ("GTC", "gtc"),
    ("pre-market", "pre"),
    ("post-market", "post"),
)
DURATION_VALUES: Tuple[str, ...] = tuple(value for _, value in DURATIONS)


def order_types(order_class: OrderClass) -> Tuple[str, ...]:
    if order_class in ("equity", "option"):
        return SINGLE_ORDER_TYPES
    if order_class in ("multileg", "combo"):
        return MULTI_ORDER_TYPES
    raise InvalidInput(f"Unknown order class: {order_class}")


def normalize_duration(raw: str) -> str:
    """'pre-market' -> 'pre', 'GTC' -> 'gtc'"""
    value = str(raw).strip().lower().replace("-market", "")
    if value not in DURATION_VALUES:
        raise InvalidInput(f"'{raw}' is not a valid duration. Choose one of: {', '.join(DURATION_VALUES)}")
    return value


def parse_price(raw: Union[str, float], what: str = "limit") -> float:
    """A limit or stop price: numeric, non-zero and positive."""
    value = parse_number(raw, what) if isinstance(raw, str) else float(raw)
    if value == 0:
        raise InvalidInput(f"The {what} price must not be 0.")
    if value < 0:
        raise InvalidInput(f"The {what} price must be a positive number.")
    return value


def collapse(values: Sequence[Any]) -> Union[Any, List[Any]]:
    """Single-element sequences become a scalar; longer ones stay a list."""
    values = list(values)
    return values[0] if len(values) == 1 else values


@dataclass(frozen=True)
class NetGreeks:
    """Greeks summed across option legs; sell-type sides subtract."""

    delta: float = 0.0
    gamma: float = 0.0
    theta: float = 0.0
    vega: float = 0.0
    rho: float = 0.0
    phi: float = 0.0

    def as_dict(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in GREEK_NAMES}


def net_greeks(legs: Sequence[Leg], decimals: int = 6) -> NetGreeks:
    totals = {name: 0.0 for name in GREEK_NAMES}
    for leg in legs:
        if leg.contract is None:
            continue
        sign = side_sign(leg.side)
        for name in GREEK_NAMES:
            totals[name] += sign * leg.contract.greeks.get(name)
    return NetGreeks(**{name: round(value, decimals) for name, value in totals.items()})


@dataclass(frozen=True)
class OrderPayload:
    """
    Immutable order ready for preview or submission.

    sides/quantities/option_symbols are parallel to the legs in insertion order;
    option_symbols holds None for equity legs.
    """

    symbol: str
    order_class: OrderClass
    order_type: str
    duration: str
    sides: Tuple[str, ...]
    quantities: Tuple[int, ...]
    option_symbols: Tuple[Optional[str], ...] = ()
    price: Optional[float] = None
    stop: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.sides:
            raise InvalidInput("An order needs at least one leg")
        if len(self.sides) != len(self.quantities):
            raise InvalidInput("sides and quantities must have one entry per leg")
        if self.option_symbols and len(self.option_symbols) != len(self.sides):
            raise InvalidInput("option_symbols must have one entry per leg")
        if self.order_type not in order_types(self.order_class):
            raise InvalidInput(f"'{self.order_type}' is not a valid order type for a {self.order_class} order")
        if self.duration not in DURATION_VALUES:
            raise InvalidInput(f"'{self.duration}' is not a valid duration")
        if self.order_type in PRICED_TYPES:
            if self.price is None:
                raise InvalidInput(f"A price is required for {self.order_type} orders")
            parse_price(self.price)
        if self.order_type in STOP_TYPES:
            if self.stop is None:
                raise InvalidInput(f"A stop price is required for {self.order_type} orders")
            parse_price(self.stop, "stop")

    def to_params(self) -> Dict[str, Any]:
        """API field names; length-1 leg arrays collapse to scalars."""
        params: Dict[str, Any] = {
            "class": self.order_class,
            "symbol": self.symbol,
            "type": self.order_type,
            "duration": self.duration,
            "side": collapse(self.sides),
            "quantity": collapse(self.quantities),
        }
        if any(s is not None for s in self.option_symbols):
            params["option_symbol"] = collapse(self.option_symbols)
        if self.order_type in PRICED_TYPES:
            params["price"] = self.price
        if self.order_type in STOP_TYPES:
            params["stop"] = self.stop
        return params


def assemble_payload(
    builder: OrderBuilder,
    order_type: str,
    duration: str,
    price: Optional[float] = None,
    stop: Optional[float] = None,
) -> OrderPayload:
    order_class = builder.current_class()
    if order_class is None:
        raise InvalidInput("Add at least one leg before assembling the order")
    payload = OrderPayload(
        symbol=builder.symbol,
        order_class=order_class,
        order_type=order_type,
        duration=normalize_duration(duration),
        sides=tuple(builder.sides),
        quantities=tuple(builder.quantities),
        option_symbols=tuple(builder.option_symbols),
        price=price if order_type in PRICED_TYPES else None,
        stop=stop if order_type in STOP_TYPES else None,
    )
    logger.info(f"assembled {payload.order_class} {payload.order_type} order for {payload.symbol} legs={len(payload.sides)}")
    return payload


@dataclass(frozen=True)
class OrderTicket:
    """What the session shows before submission."""

    payload: OrderPayload
    quote: Optional[PricingQuote] = None
    greeks: Optional[NetGreeks] = None
    legs: Tuple[Leg, ...] = field(default_factory=tuple)


class OrderAssembler:
    """Interactive order type, price, stop and duration capture for a finished builder."""

    def __init__(self, pricing: PricingResolver, prompter: Prompter, config: Optional[PricingConfig] = None) -> None:
        self.pricing = pricing
        self.prompter = prompter
        self.config = config or PricingConfig()

    def choose_order_type(self, order_class: OrderClass) -> str:
        options = [(t.replace("_", " "), t) for t in order_types(order_class)]
        return self.prompter.select("Order type", options).value  # type: ignore[union-attr]

    def confirm_price(self, builder: OrderBuilder, order_type: str) -> Tuple[float, PricingQuote]:
        """Re-quote until the user enters a price; the refresh keystroke re-quotes instead."""
        what = "limit" if order_type in ("limit", "stop_limit") else order_type
        while True:
            quote = self.pricing.refresh(builder.symbol, builder.legs, builder.current_class())  # type: ignore[arg-type]
            self.prompter.present(quote)
            outcome = self.prompter.ask(
                f"Enter the {what} price",
                lambda raw: parse_price(raw, what),
                refresh=True,
            )
            if isinstance(outcome, Refresh):
                logger.debug("price refresh requested")
                continue
            if isinstance(outcome, Resolved):
                return outcome.value, quote

    def choose_stop(self) -> float:
        return self.prompter.ask("Enter the stop price", lambda raw: parse_price(raw, "stop")).value  # type: ignore[union-attr]

    def choose_duration(self) -> str:
        return self.prompter.select("Duration", list(DURATIONS)).value  # type: ignore[union-attr]

    def assemble(self, builder: OrderBuilder) -> OrderTicket:
        order_class = builder.current_class()
        if order_class is None:
            raise InvalidInput("Add at least one leg before assembling the order")

        order_type = self.choose_order_type(order_class)
        price = None
        quote = None
        if order_type in PRICED_TYPES:
            price, quote = self.confirm_price(builder, order_type)
        stop = self.choose_stop() if order_type in STOP_TYPES else None
        duration = self.choose_duration()

        payload = assemble_payload(builder, order_type, duration, price=price, stop=stop)
        greeks = None
        if builder.option_legs:
            greeks = net_greeks(builder.legs, self.config.greeks_decimals)
        return OrderTicket(payload=payload, quote=quote, greeks=greeks, legs=builder.legs)
