"""
Configuration system: schemas and loaders
"""

from .schemas import (
    AppConfig,
    BrokerConfig,
    ChainConfig,
    SelectorConfig,
    PricingConfig,
    ExpectedMoveConfig,
)
from .loader import load_config, apply_env_overrides, apply_cli_overrides

__all__ = [
    "AppConfig",
    "BrokerConfig",
    "ChainConfig",
    "SelectorConfig",
    "PricingConfig",
    "ExpectedMoveConfig",
    "load_config",
    "apply_env_overrides",
    "apply_cli_overrides",
]
