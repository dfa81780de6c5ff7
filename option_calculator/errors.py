"""
Error taxonomy shared by the order builder, selectors, analytics and the broker client.
"""

from __future__ import annotations

from typing import Any, Optional


class OptionCalculatorError(Exception):
    """Base class for all domain errors."""


class InvalidInput(OptionCalculatorError, ValueError):
    """Malformed or out-of-range user input (recovered by re-prompting)."""


class InvalidConfiguration(OptionCalculatorError, ValueError):
    """Settings that make an operation impossible (e.g. calls and puts both excluded)."""


class NotFound(OptionCalculatorError, LookupError):
    """No quote/expirations/strikes/chain for a symbol."""


class NoMatch(OptionCalculatorError, LookupError):
    """Delta-based strike selection found no candidate."""


class BrokerRejected(OptionCalculatorError):
    """Raised when the brokerage reports errors for a request (e.g. insufficient buying power)."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, payload: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class BrokerUnauthorized(BrokerRejected):
    """Raised when the API token is missing or invalid."""


__all__ = [
    "OptionCalculatorError",
    "InvalidInput",
    "InvalidConfiguration",
    "NotFound",
    "NoMatch",
    "BrokerRejected",
    "BrokerUnauthorized",
]
