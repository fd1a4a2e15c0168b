"""Configuration schema — Pydantic models for config.yaml."""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from pricing_core.models.pricefeed import Market
from pricing_core.models.vpool import PoolState


class DatabaseConfig(BaseModel):
    url: str = "sqlite:///:memory:"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: Literal["json", "console"] = "json"


class PricefeedConfig(BaseModel):
    # Default lookback used by TWAP queries and snapshot pruning
    twap_lookback_s: int = Field(default=900, gt=0)
    markets: list[Market] = Field(default_factory=list)


class VpoolConfig(BaseModel):
    twap_lookback_s: int = Field(default=900, gt=0)
    # Genesis pools
    pools: list[PoolState] = Field(default_factory=list)


class StablecoinConfig(BaseModel):
    stable_denom: str = "unusd"
    collateral_denom: str = "uusdc"
    gov_denom: str = "unibi"
    coll_ratio: Decimal = Decimal("1")
    fee_ratio: Decimal = Decimal("0.002")
    ef_fee_ratio: Decimal = Decimal("0.5")
    bonus_rate_recoll: Decimal = Decimal("0.002")

    @field_validator("coll_ratio", "fee_ratio", "ef_fee_ratio", "bonus_rate_recoll")
    @classmethod
    def _unit_interval(cls, value: Decimal) -> Decimal:
        if value < 0 or value > 1:
            raise ValueError(f"ratio must be within [0, 1], got {value}")
        return value


class AppConfig(BaseModel):
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    pricefeed: PricefeedConfig = Field(default_factory=PricefeedConfig)
    vpool: VpoolConfig = Field(default_factory=VpoolConfig)
    stablecoin: StablecoinConfig = Field(default_factory=StablecoinConfig)
