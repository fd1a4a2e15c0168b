"""Stablecoin params, messages and settlement responses."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from pricing_core.models.coin import Coin, validate_address


class StablecoinParams(BaseModel):
    coll_ratio: Decimal = Decimal("1")
    fee_ratio: Decimal = Decimal("0.002")
    # Share of collected fees routed to the ecosystem fund
    ef_fee_ratio: Decimal = Decimal("0.5")
    bonus_rate_recoll: Decimal = Decimal("0.002")

    @field_validator("coll_ratio", "fee_ratio", "ef_fee_ratio", "bonus_rate_recoll")
    @classmethod
    def _unit_interval(cls, value: Decimal) -> Decimal:
        if value < 0 or value > 1:
            raise ValueError(f"ratio must be within [0, 1], got {value}")
        return value


class MsgMintStable(BaseModel):
    creator: str
    stable: Coin

    def validate_basic(self) -> None:
        validate_address(self.creator)


class MsgBurnStable(BaseModel):
    creator: str
    stable: Coin

    def validate_basic(self) -> None:
        validate_address(self.creator)


class MintStableResponse(BaseModel):
    stable: Coin
    used_coins: list[Coin] = Field(default_factory=list)
    fees_paid: list[Coin] = Field(default_factory=list)


class BurnStableResponse(BaseModel):
    collateral: Coin
    gov: Coin
    fees_paid: list[Coin] = Field(default_factory=list)
