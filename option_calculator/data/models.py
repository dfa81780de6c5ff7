"""
Data models for quotes, option chains, broker responses and provider interfaces.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Literal, Optional, Protocol, Sequence, Tuple

OptionType = Literal["call", "put"]
InstrumentKind = Literal["equity", "option"]

GREEK_NAMES = ("delta", "gamma", "theta", "vega", "rho", "phi")


@dataclass(frozen=True)
class Greeks:
    """Option sensitivities as reported by the broker (iv = smoothed implied volatility)."""
    delta: Optional[float] = None
    gamma: Optional[float] = None
    theta: Optional[float] = None
    vega: Optional[float] = None
    rho: Optional[float] = None
    phi: Optional[float] = None
    iv: Optional[float] = None

    def get(self, name: str) -> float:
        """Greek value by name; missing values count as 0.0"""
        value = getattr(self, name)
        return 0.0 if value is None else float(value)


@dataclass(frozen=True)
class Quote:
    """
    Immutable quote snapshot for an equity or an option.

    Greeks are only present when kind == "option". Re-fetch to refresh.
    """
    symbol: str
    kind: InstrumentKind
    last: float
    bid: float = 0.0
    ask: float = 0.0
    open: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    close: Optional[float] = None
    prevclose: Optional[float] = None
    change: float = 0.0
    change_percent: float = 0.0
    volume: int = 0
    description: str = ""
    underlying: Optional[str] = None
    open_interest: Optional[int] = None
    average_volume: Optional[int] = None
    week_52_high: Optional[float] = None
    week_52_low: Optional[float] = None
    greeks: Optional[Greeks] = None


@dataclass(frozen=True)
class ChainEntry:
    """One option contract of a chain, keyed by (expiration, strike, option_type)."""
    symbol: str
    underlying: str
    expiration: date
    strike: float
    option_type: OptionType
    bid: float = 0.0
    ask: float = 0.0
    last: Optional[float] = None
    volume: int = 0
    open_interest: int = 0
    description: str = ""
    greeks: Greeks = Greeks()

    @property
    def key(self) -> Tuple[date, float, OptionType]:
        return (self.expiration, round(self.strike, 2), self.option_type)

    @property
    def delta(self) -> Optional[float]:
        return self.greeks.delta


@dataclass(frozen=True)
class PreviewResult:
    """Order preview returned by the broker (cost < 0 means proceeds)."""
    commission: float
    cost: float
    order_cost: float
    margin_change: Optional[float] = None
    status: str = "ok"
    raw: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class OrderReceipt:
    order_id: str
    status: str = "ok"


@dataclass(frozen=True)
class Position:
    """Open account position; cost_basis is the total paid (negative for short premium)."""
    symbol: str
    quantity: float
    cost_basis: float
    date_acquired: Optional[str] = None


class MarketDataProvider(Protocol):
    """
    Protocol for market-data providers.

    All methods raise NotFound when the broker has no data for the request.
    """

    def get_quote(self, symbol: str) -> Quote:
        ...

    def get_option_expirations(self, symbol: str, include_all_roots: bool = False) -> Sequence[date]:
        ...

    def get_option_strikes(self, symbol: str, expiration: date) -> Sequence[float]:
        ...

    def get_option_chains(self, symbol: str, expiration: date, greeks: bool = True) -> Sequence[ChainEntry]:
        ...


class OrderGateway(Protocol):
    """Protocol for order preview/submission. Both raise BrokerRejected on API errors."""

    def preview_order(self, params: Dict[str, Any]) -> PreviewResult:
        ...

    def create_order(self, params: Dict[str, Any]) -> OrderReceipt:
        ...
