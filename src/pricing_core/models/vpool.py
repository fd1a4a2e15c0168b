"""Virtual pool state and reserve snapshots."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import IntEnum

from pydantic import BaseModel, Field


class Direction(IntEnum):
    """Which side of the base reserve a trade acts on."""

    ADD_TO_AMM = 0
    REMOVE_FROM_AMM = 1


class PoolState(BaseModel):
    pair: str
    base_asset_reserve: Decimal = Field(gt=0)
    quote_asset_reserve: Decimal = Field(gt=0)
    # Max fractional move of the pool price within one block (0 disables)
    trade_limit_ratio: Decimal = Field(default=Decimal("0.1"), ge=0, le=1)
    max_oracle_spread_ratio: Decimal = Field(default=Decimal("0.1"), ge=0, le=1)
    max_holding_base_asset: int = Field(default=0, ge=0)
    # 0 disables the cap
    open_interest_notional_cap: int = Field(default=0, ge=0)
    # Net base asset held by traders: removals from the pool minus additions
    base_asset_position: Decimal = Decimal("0")
    curve: str = "constant_product"

    @property
    def base_asset(self) -> str:
        return self.pair.split(":", 1)[0]

    @property
    def quote_asset(self) -> str:
        return self.pair.split(":", 1)[1]


class PoolSnapshot(BaseModel):
    """Pool reserves as of a block; the pool's own TWAP history."""

    model_config = {"frozen": True}

    pair: str
    base_asset_reserve: Decimal
    quote_asset_reserve: Decimal
    timestamp: datetime
    block_height: int
