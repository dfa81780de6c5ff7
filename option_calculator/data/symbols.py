"""
Symbol parsing utilities for OCC/OSI option symbols.

Supports:
- EQUITY: plain tickers, e.g. "SPY", "BRK.B"
- OPT: {ROOT}{YYMMDD}{C|P}{STRIKE*1000, 8 digits} (e.g., SPY200619C00300000)
"""

from dataclasses import dataclass
from datetime import date
from typing import Literal
import re

_OCC_RE = re.compile(r"^([A-Z0-9.]{1,6})(\d{2})(\d{2})(\d{2})([CP])(\d{8})$")

_CP_TO_TYPE = {"C": "call", "P": "put"}


@dataclass(frozen=True)
class OptionSymbol:
    """Parsed option symbol"""
    underlying: str
    expiration: date
    option_type: Literal["call", "put"]
    strike: float
    original_symbol: str = ""

    def describe(self) -> str:
        """Human readable form, e.g. 'SPY Jun 19 2020 $300.00 Call'"""
        return (
            f"{self.underlying} {self.expiration.strftime('%b %d %Y')} "
            f"${self.strike:,.2f} {self.option_type.capitalize()}"
        )


def parse_option_symbol(symbol: str) -> OptionSymbol:
    """
    Parse an OCC option symbol into its components.

    Examples:
        >>> parse_option_symbol("SPY200619C00300000")
        OptionSymbol(underlying='SPY', expiration=date(2020, 6, 19), option_type='call', strike=300.0, ...)
    """
    original = symbol
    symbol = symbol.strip().upper().replace(" ", "")
    m = _OCC_RE.match(symbol)
    if not m:
        raise ValueError(f"Unrecognized option symbol format: {original}")

    root, yy, mm, dd, cp, strike_str = m.groups()
    try:
        expiration = date(2000 + int(yy), int(mm), int(dd))
    except ValueError as e:
        raise ValueError(f"Invalid expiry date in option symbol: {original}") from e

    return OptionSymbol(
        underlying=root,
        expiration=expiration,
        option_type=_CP_TO_TYPE[cp],  # type: ignore[arg-type]
        strike=int(strike_str) / 1000.0,
        original_symbol=original,
    )


def format_option_symbol(underlying: str, expiration: date, option_type: str, strike: float) -> str:
    """Build the OCC symbol for a contract (inverse of parse_option_symbol)."""
    cp = "C" if option_type == "call" else "P"
    strike_int = int(round(float(strike) * 1000))
    if strike_int <= 0 or strike_int > 99_999_999:
        raise ValueError(f"Strike out of range for option symbol: {strike}")
    return f"{underlying.upper()}{expiration.strftime('%y%m%d')}{cp}{strike_int:08d}"


def is_option_symbol(symbol: str) -> bool:
    """Check if symbol is an option"""
    try:
        parse_option_symbol(symbol)
        return True
    except ValueError:
        return False
