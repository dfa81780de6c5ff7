"""
Analytics derived from quotes and chains.
"""

from .expected_move import ExpectedMove, atm_call, expected_move, scale_volatility
from .positions import PositionSummary, position_value, summarize_positions

__all__ = [
    "ExpectedMove",
    "atm_call",
    "expected_move",
    "scale_volatility",
    "PositionSummary",
    "position_value",
    "summarize_positions",
]
