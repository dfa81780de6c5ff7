"""
Configuration schemas using Pydantic for validation and type safety.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


LIVE_BASE_URL = "https://api.tradier.com/v1/"
SANDBOX_BASE_URL = "https://sandbox.tradier.com/v1/"


class BrokerConfig(BaseModel):
    """Tradier API credentials and transport settings"""
    token: str = Field(default="", description="Tradier API access token")
    sandbox: bool = Field(default=False, description="Use the sandbox endpoint instead of live")
    account_id: Optional[str] = Field(default=None, description="Account ID (required for orders and balances)")
    timeout_s: float = Field(default=10.0, description="HTTP timeout in seconds")
    max_attempts: int = Field(default=3, description="Attempts for 429/5xx responses")
    backoff_base_s: float = Field(default=0.5, description="Initial retry backoff in seconds")
    backoff_cap_s: float = Field(default=4.0, description="Maximum retry backoff in seconds")

    @field_validator("max_attempts")
    @classmethod
    def validate_max_attempts(cls, v):
        if v < 1:
            raise ValueError("max_attempts must be at least 1")
        return v

    @property
    def base_url(self) -> str:
        return SANDBOX_BASE_URL if self.sandbox else LIVE_BASE_URL


class ChainConfig(BaseModel):
    """Strike window around the underlying price"""
    strikes: int = Field(default=5, description="Strikes below and above the reference price")
    include_calls: bool = Field(default=True, description="Include calls in the window")
    include_puts: bool = Field(default=True, description="Include puts in the window")

    @field_validator("strikes")
    @classmethod
    def validate_strikes(cls, v):
        if v < 1:
            raise ValueError(f"Invalid strikes: {v}. Must be a positive integer")
        return v


class SelectorConfig(BaseModel):
    """Strike selector configuration"""
    list_counts: List[int] = Field(
        default_factory=lambda: [6, 8, 10, 12, 14, 16, 18, 20],
        description="Strike counts offered by the 'select from list' method",
    )
    delta_margin: float = Field(default=1.2, description="Multiplier applied to the target delta bound")
    strike_precision: int = Field(default=2, description="Decimal places used when comparing strikes")

    @field_validator("list_counts")
    @classmethod
    def validate_list_counts(cls, v):
        for count in v:
            if count <= 0 or count % 2:
                raise ValueError(f"Invalid list count: {count}. Must be a positive even number")
        return v

    @field_validator("delta_margin")
    @classmethod
    def validate_delta_margin(cls, v):
        if v < 1.0:
            raise ValueError("delta_margin must be >= 1.0")
        return v


class PricingConfig(BaseModel):
    """Rounding used for quoted prices and net greeks"""
    mid_decimals: int = Field(default=2, description="Decimal places for mid prices")
    greeks_decimals: int = Field(default=6, description="Decimal places for net greeks")


class ExpectedMoveConfig(BaseModel):
    """Expected-move estimator configuration"""
    days_per_year: int = Field(default=365, description="Calendar days used to annualise volatility")
    default_dte: int = Field(default=1, description="DTE used when no expiration is given")


class AppConfig(BaseModel):
    """Complete application configuration"""
    broker: BrokerConfig = Field(default_factory=BrokerConfig)
    chain: ChainConfig = Field(default_factory=ChainConfig)
    selector: SelectorConfig = Field(default_factory=SelectorConfig)
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    expected_move: ExpectedMoveConfig = Field(default_factory=ExpectedMoveConfig)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO", description="Logging level")
