"""
Expected move: one standard deviation of the underlying's price over a horizon, from the
implied volatility of the at-the-money call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

import numpy as np

from ..config.schemas import ExpectedMoveConfig
from ..data.models import ChainEntry, MarketDataProvider
from ..errors import InvalidInput, NotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExpectedMove:
    """Percent move (0.086 = 8.6%) and the dollar range around the last price."""

    symbol: str
    last: float
    percent: float
    dte: int
    expiration: date
    contract: ChainEntry

    @property
    def dollars(self) -> float:
        return self.percent * self.last

    @property
    def low(self) -> float:
        return self.last - self.dollars

    @property
    def high(self) -> float:
        return self.last + self.dollars


def scale_volatility(iv: float, dte: int, days_per_year: int = 365) -> float:
    """Annualised volatility scaled to `dte` calendar days."""
    return float(iv) * float(np.sqrt(dte / days_per_year))


def atm_call(chain: Sequence[ChainEntry], price: float) -> ChainEntry:
    """Call whose strike is closest to `price`; the lower strike wins a tie."""
    calls = sorted((e for e in chain if e.option_type == "call"), key=lambda e: e.strike)
    if not calls:
        raise NotFound("No call contracts in chain")
    return min(calls, key=lambda e: abs(e.strike - price))


def expected_move(
    provider: MarketDataProvider,
    symbol: str,
    expiration: Optional[date] = None,
    *,
    today: Optional[date] = None,
    config: Optional[ExpectedMoveConfig] = None,
) -> ExpectedMove:
    """
    Expected move for an equity by `expiration`, or over one day when no expiration is given
    (priced off the nearest expiration).
    """
    config = config or ExpectedMoveConfig()
    today = today or date.today()

    quote = provider.get_quote(symbol)
    if quote.kind == "option":
        raise InvalidInput(f"{symbol} is an option; the expected move needs an equity symbol")

    expirations = list(provider.get_option_expirations(quote.symbol, include_all_roots=True))
    if expiration is None:
        expiration = min(expirations)
        dte = config.default_dte
    else:
        if expiration not in set(expirations):
            raise InvalidInput(f"There is no option chain for {quote.symbol} expiring {expiration.isoformat()}")
        dte = (expiration - today).days
        if dte < 0:
            raise InvalidInput(f"{expiration.isoformat()} has already expired")

    try:
        chain = provider.get_option_chains(quote.symbol, expiration, True)
    except NotFound:
        raise InvalidInput(f"There is no option chain for {quote.symbol} expiring {expiration.isoformat()}") from None

    contract = atm_call(chain, quote.last)
    iv = contract.greeks.iv
    if iv is None or np.isnan(iv):
        raise NotFound(f"No implied volatility for {contract.symbol}")

    percent = scale_volatility(iv, dte, config.days_per_year)
    logger.info(
        f"expected move {quote.symbol} exp={expiration.isoformat()} dte={dte} "
        f"atm={contract.strike} iv={iv} -> {percent:.4f}"
    )
    return ExpectedMove(
        symbol=quote.symbol,
        last=float(quote.last),
        percent=percent,
        dte=dte,
        expiration=expiration,
        contract=contract,
    )
