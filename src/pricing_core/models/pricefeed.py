"""Pricefeed models — markets, oracle price points, current price snapshots."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator


def pair_id(base_asset: str, quote_asset: str) -> str:
    return f"{base_asset}:{quote_asset}"


class Market(BaseModel):
    """A trading pair with its oracle allow-list."""

    base_asset: str
    quote_asset: str
    oracles: list[str] = Field(default_factory=list)
    active: bool = True

    @property
    def market_id(self) -> str:
        return pair_id(self.base_asset, self.quote_asset)


class PricefeedParams(BaseModel):
    markets: list[Market] = Field(default_factory=list)
    twap_lookback_s: int = Field(default=900, gt=0)


class PricePoint(BaseModel):
    """One oracle submission. Immutable once stored."""

    model_config = {"frozen": True}

    id: int
    market_id: str
    oracle: str
    price: Decimal
    timestamp: datetime
    expiry: datetime

    @model_validator(mode="after")
    def _check(self) -> PricePoint:
        if self.price <= 0:
            raise ValueError("price must be positive")
        if self.expiry <= self.timestamp:
            raise ValueError("expiry must be after the submission timestamp")
        return self


class CurrentPrice(BaseModel):
    """Per-block reduction of all valid price points of a market.

    ``expiry`` is the latest expiry among the reduced points; once it has
    passed, the snapshot no longer contributes to a TWAP.
    """

    model_config = {"frozen": True}

    market_id: str
    price: Decimal
    timestamp: datetime
    block_height: int
    expiry: datetime | None = None
