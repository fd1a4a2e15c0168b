"""Error taxonomy shared by the pricefeed, vpool and stablecoin modules.

Every error is scoped to the single call that raised it: mutating operations
run inside ``Context.atomic()`` so raising rolls back all writes made so far.
"""

from __future__ import annotations

from decimal import Decimal


class PricingError(Exception):
    """Base class for all pricing_core errors."""


# ── Addresses / params ────────────────────────────────────────


class InvalidAddress(PricingError):
    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"invalid address: {address!r}")


class InvalidParams(PricingError):
    """Raised when keeper parameters violate their invariants."""


# ── Pricefeed ─────────────────────────────────────────────────


class UnknownMarket(PricingError):
    def __init__(self, market_id: str) -> None:
        self.market_id = market_id
        super().__init__(f"market not found: {market_id}")


class Unauthorized(PricingError):
    def __init__(self, oracle: str, market_id: str) -> None:
        self.oracle = oracle
        self.market_id = market_id
        super().__init__(f"oracle {oracle} is not authorized for market {market_id}")


class InactiveMarket(PricingError):
    def __init__(self, market_id: str) -> None:
        self.market_id = market_id
        super().__init__(f"market {market_id} is inactive")


class InvalidPrice(PricingError):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"invalid price: {reason}")


class NoValidPrices(PricingError):
    def __init__(self, market_id: str) -> None:
        self.market_id = market_id
        super().__init__(f"no valid prices for market {market_id}")


class InsufficientHistory(PricingError):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"no price snapshots in scope for {key}")


# ── Virtual pools ─────────────────────────────────────────────


class PoolNotFound(PricingError):
    def __init__(self, pair: str) -> None:
        self.pair = pair
        super().__init__(f"pool not found: {pair}")


class PoolAlreadyExists(PricingError):
    def __init__(self, pair: str) -> None:
        self.pair = pair
        super().__init__(f"pool already exists: {pair}")


class OutputBelowMinimum(PricingError):
    def __init__(self, output: int, minimum: int) -> None:
        self.output = output
        self.minimum = minimum
        super().__init__(f"output {output} is below minimum {minimum}")


class InputAboveLimit(PricingError):
    def __init__(self, required: int, limit: int) -> None:
        self.required = required
        self.limit = limit
        super().__init__(f"required input {required} is above limit {limit}")


class FluctuationLimitExceeded(PricingError):
    def __init__(self, pair: str, reference: Decimal, new_price: Decimal, limit: Decimal) -> None:
        self.pair = pair
        self.reference = reference
        self.new_price = new_price
        self.limit = limit
        super().__init__(
            f"price of {pair} would move from {reference} to {new_price}, "
            f"beyond the fluctuation limit {limit}"
        )


class OpenInterestCapExceeded(PricingError):
    def __init__(self, pair: str, notional: Decimal, cap: int) -> None:
        self.pair = pair
        self.notional = notional
        self.cap = cap
        super().__init__(f"open interest notional {notional} on {pair} exceeds cap {cap}")


class ReserveExhausted(PricingError):
    def __init__(self, pair: str, side: str) -> None:
        self.pair = pair
        self.side = side
        super().__init__(f"{side} reserve of {pair} would be driven to zero or below")


# ── Balances ──────────────────────────────────────────────────


class NotEnoughBalance(PricingError):
    """The creator cannot cover a mint leg.

    The message names the denomination when nothing is held, or the held
    coin (e.g. ``1unibi``) when the balance is merely short.
    """

    def __init__(self, denom: str, required: int, available: int) -> None:
        self.denom = denom
        self.required = required
        self.available = available
        detail = denom if available == 0 else f"{available}{denom}"
        super().__init__(f"not enough balance: {detail}")


class InsufficientFunds(PricingError):
    def __init__(self, address: str, denom: str, required: int, available: int) -> None:
        self.address = address
        self.denom = denom
        self.required = required
        self.available = available
        super().__init__(
            f"insufficient funds: {address} has {available}{denom}, needs {required}{denom}"
        )


class InvalidCoin(PricingError):
    def __init__(self, expected_denom: str, got_denom: str) -> None:
        self.expected_denom = expected_denom
        self.got_denom = got_denom
        super().__init__(f"expected {expected_denom} coins, got {got_denom}")
