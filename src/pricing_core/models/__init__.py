"""Pydantic domain models."""

from pricing_core.models.coin import Coin, coins, validate_address
from pricing_core.models.pricefeed import CurrentPrice, Market, PricefeedParams, PricePoint, pair_id
from pricing_core.models.stablecoin import (
    BurnStableResponse,
    MintStableResponse,
    MsgBurnStable,
    MsgMintStable,
    StablecoinParams,
)
from pricing_core.models.vpool import Direction, PoolSnapshot, PoolState

__all__ = [
    "BurnStableResponse",
    "Coin",
    "CurrentPrice",
    "Direction",
    "Market",
    "MintStableResponse",
    "MsgBurnStable",
    "MsgMintStable",
    "PoolSnapshot",
    "PoolState",
    "PricePoint",
    "PricefeedParams",
    "StablecoinParams",
    "coins",
    "pair_id",
    "validate_address",
]
