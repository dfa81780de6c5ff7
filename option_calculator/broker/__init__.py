"""
Broker layer: Tradier REST client
"""

from .tradier import TradierClient, flatten_params

__all__ = ["TradierClient", "flatten_params"]
