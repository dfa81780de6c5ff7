"""
Order construction: leg accumulation, assembly into a payload, and modification params.
"""

from .builder import OrderBuilder, LegCollector, match_expiration
from .assembler import (
    DURATIONS,
    NetGreeks,
    OrderAssembler,
    OrderPayload,
    OrderTicket,
    assemble_payload,
    collapse,
    net_greeks,
    normalize_duration,
    order_types,
    parse_price,
)
from .modify import build_modify_params

__all__ = [
    "OrderBuilder",
    "LegCollector",
    "match_expiration",
    "DURATIONS",
    "NetGreeks",
    "OrderAssembler",
    "OrderPayload",
    "OrderTicket",
    "assemble_payload",
    "collapse",
    "net_greeks",
    "normalize_duration",
    "order_types",
    "parse_price",
    "build_modify_params",
]
