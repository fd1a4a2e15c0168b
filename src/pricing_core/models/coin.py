"""Coins and account addresses."""

from __future__ import annotations

import bech32
from pydantic import BaseModel, Field

from pricing_core.errors import InvalidAddress


def validate_address(address: str) -> str:
    """Return *address* if it is a checksummed bech32 account address."""
    if not isinstance(address, str):
        raise InvalidAddress(address)
    hrp, data = bech32.bech32_decode(address)
    if hrp is None or not data:
        raise InvalidAddress(address)
    if bech32.convertbits(data, 5, 8, False) is None:
        raise InvalidAddress(address)
    return address


class Coin(BaseModel):
    """An exact integer amount of one denomination."""

    model_config = {"frozen": True}

    denom: str = Field(min_length=1)
    amount: int = Field(ge=0)

    def __str__(self) -> str:
        return f"{self.amount}{self.denom}"


def coins(*items: Coin) -> list[Coin]:
    """Normalised coin list: zero amounts dropped, sorted by denom."""
    merged: dict[str, int] = {}
    for coin in items:
        merged[coin.denom] = merged.get(coin.denom, 0) + coin.amount
    return [Coin(denom=d, amount=a) for d, a in sorted(merged.items()) if a > 0]
