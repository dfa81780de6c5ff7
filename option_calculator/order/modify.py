"""
Parameters for modifying an open order.
"""

from typing import Any, Dict, Optional

from ..errors import InvalidInput
from .assembler import normalize_duration, parse_price

MODIFY_TYPES = ("limit", "stop", "stop_limit", "debit", "credit")


def build_modify_params(
    order_type: Optional[str] = None,
    duration: Optional[str] = None,
    price: Optional[float] = None,
    stop: Optional[float] = None,
) -> Dict[str, Any]:
    """Only the fields being changed; at least one is required."""
    params: Dict[str, Any] = {}
    if order_type is not None:
        value = str(order_type).strip().lower()
        if value not in MODIFY_TYPES:
            raise InvalidInput(f"'{order_type}' is not a valid order type. Choose one of: {', '.join(MODIFY_TYPES)}")
        params["type"] = value
    if duration is not None:
        params["duration"] = normalize_duration(duration)
    if price is not None:
        params["price"] = parse_price(price, "limit")
    if stop is not None:
        params["stop"] = parse_price(stop, "stop")
    if not params:
        raise InvalidInput("Nothing to modify: pass a type, duration, price or stop")
    return params
