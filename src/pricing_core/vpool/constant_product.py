"""Constant-product (x * y = k) virtual pool.

The base reserve is the traded side: ``swap_input`` takes an exact base
amount and ``swap_output`` solves for the base amount behind an exact quote
amount. Fees are charged elsewhere and never touch k.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, localcontext

from pricing_core import fixedpoint
from pricing_core.context import Context
from pricing_core.errors import (
    FluctuationLimitExceeded,
    InputAboveLimit,
    OpenInterestCapExceeded,
    OutputBelowMinimum,
    ReserveExhausted,
)
from pricing_core.logging import get_logger
from pricing_core.models.vpool import Direction, PoolState
from pricing_core.pricefeed.twap import time_weighted_average
from pricing_core.vpool.base import VirtualPool
from pricing_core.vpool.registry import register


@dataclass(frozen=True)
class ReserveUpdate:
    """Post-trade reserves plus the traded amounts (unrounded)."""

    base_reserve: Decimal
    quote_reserve: Decimal
    base_amount: Decimal
    quote_amount: Decimal


def _invariant(base: Decimal, quote: Decimal) -> Decimal:
    # Exact product; quantizing k would shift the curve
    with localcontext(fixedpoint.CONTEXT):
        return base * quote


def quote_for_base(pair: str, base: Decimal, quote: Decimal, direction: Direction, amount: Decimal) -> ReserveUpdate:
    """Move ``amount`` base into (ADD) or out of (REMOVE) the pool."""
    k = _invariant(base, quote)
    if direction == Direction.ADD_TO_AMM:
        new_base = fixedpoint.add(base, amount)
    else:
        new_base = fixedpoint.sub(base, amount)
    if new_base <= 0:
        raise ReserveExhausted(pair, "base")
    new_quote = fixedpoint.quo(k, new_base)
    if new_quote <= 0:
        raise ReserveExhausted(pair, "quote")
    return ReserveUpdate(new_base, new_quote, amount, abs(fixedpoint.sub(quote, new_quote)))


def base_for_quote(pair: str, base: Decimal, quote: Decimal, direction: Direction, amount: Decimal) -> ReserveUpdate:
    """Inverse of :func:`quote_for_base`: ``amount`` is the quote side."""
    k = _invariant(base, quote)
    if direction == Direction.ADD_TO_AMM:
        # Base goes in, so quote comes out
        new_quote = fixedpoint.sub(quote, amount)
    else:
        new_quote = fixedpoint.add(quote, amount)
    if new_quote <= 0:
        raise ReserveExhausted(pair, "quote")
    new_base = fixedpoint.quo(k, new_quote)
    if new_base <= 0:
        raise ReserveExhausted(pair, "base")
    return ReserveUpdate(new_base, new_quote, abs(fixedpoint.sub(base, new_base)), amount)


@register
class ConstantProductPool(VirtualPool):
    curve = "constant_product"

    # ── Pure reads ────────────────────────────────────────────

    def get_spot_price(self, ctx: Context) -> Decimal:
        state = self.state(ctx)
        return fixedpoint.quo(state.quote_asset_reserve, state.base_asset_reserve)

    def get_output_price(self, ctx: Context, direction: Direction, amount: int) -> int:
        """Quote amount a base trade of ``amount`` would produce right now."""
        if amount == 0:
            return 0
        state = self.state(ctx)
        update = quote_for_base(
            self.pair, state.base_asset_reserve, state.quote_asset_reserve, direction, Decimal(amount),
        )
        return fixedpoint.truncate_int(update.quote_amount)

    def get_output_twap(self, ctx: Context, direction: Direction, amount: int) -> int:
        """Time-weighted quote output over the pool's own reserve snapshots."""
        if amount == 0:
            return 0
        snapshots = self.keeper.get_snapshots(ctx, self.pair)

        def output_at(snapshot) -> Decimal:
            return quote_for_base(
                self.pair, snapshot.base_asset_reserve, snapshot.quote_asset_reserve,
                direction, Decimal(amount),
            ).quote_amount

        twap = time_weighted_average(
            snapshots, ctx.block_time, output_at,
            lookback=self.keeper.twap_lookback(ctx), key=self.pair,
        )
        return fixedpoint.truncate_int(twap)

    # ── Swaps ─────────────────────────────────────────────────

    def swap_input(
        self,
        ctx: Context,
        direction: Direction,
        input_amount: int,
        min_output_amount: int,
        allow_over_fluctuation: bool = False,
    ) -> int:
        if input_amount < 0 or min_output_amount < 0:
            raise ValueError("swap amounts must be non-negative")
        if input_amount == 0:
            return 0

        with ctx.atomic() as tx:
            state = self.state(tx)
            update = quote_for_base(
                self.pair, state.base_asset_reserve, state.quote_asset_reserve,
                direction, Decimal(input_amount),
            )
            output = fixedpoint.truncate_int(update.quote_amount)
            if output < min_output_amount:
                raise OutputBelowMinimum(output, min_output_amount)
            self._apply(tx, state, direction, update, allow_over_fluctuation)

        get_logger("vpool", pair=self.pair, block_height=ctx.block_height).info(
            "swap_input",
            direction=direction.name,
            base_amount=input_amount, quote_amount=output,
        )
        return output

    def swap_output(
        self,
        ctx: Context,
        direction: Direction,
        exact_output: int,
        input_limit: int,
    ) -> int:
        if exact_output < 0 or input_limit < 0:
            raise ValueError("swap amounts must be non-negative")
        if exact_output == 0:
            return 0

        with ctx.atomic() as tx:
            state = self.state(tx)
            update = base_for_quote(
                self.pair, state.base_asset_reserve, state.quote_asset_reserve,
                direction, Decimal(exact_output),
            )
            required = fixedpoint.truncate_int(update.base_amount)
            if input_limit and required > input_limit:
                raise InputAboveLimit(required, input_limit)
            self._apply(tx, state, direction, update, allow_over_fluctuation=False)

        get_logger("vpool", pair=self.pair, block_height=ctx.block_height).info(
            "swap_output",
            direction=direction.name,
            base_amount=required, quote_amount=exact_output,
        )
        return required

    # ── Internals ─────────────────────────────────────────────

    def _apply(
        self,
        ctx: Context,
        state: PoolState,
        direction: Direction,
        update: ReserveUpdate,
        allow_over_fluctuation: bool,
    ) -> None:
        """Check limits against the post-trade state, then persist it."""
        new_price = fixedpoint.quo(update.quote_reserve, update.base_reserve)

        if not allow_over_fluctuation and state.trade_limit_ratio > 0:
            reference = self.keeper.reference_price(ctx, state)
            upper = fixedpoint.mul(reference, fixedpoint.ONE + state.trade_limit_ratio)
            lower = fixedpoint.mul(reference, fixedpoint.ONE - state.trade_limit_ratio)
            if new_price > upper or new_price < lower:
                raise FluctuationLimitExceeded(self.pair, reference, new_price, state.trade_limit_ratio)

        if direction == Direction.REMOVE_FROM_AMM:
            position = fixedpoint.add(state.base_asset_position, update.base_amount)
        else:
            position = fixedpoint.sub(state.base_asset_position, update.base_amount)
        if state.open_interest_notional_cap and abs(position) > abs(state.base_asset_position):
            notional = fixedpoint.mul(abs(position), new_price)
            if notional > state.open_interest_notional_cap:
                raise OpenInterestCapExceeded(self.pair, notional, state.open_interest_notional_cap)

        new_state = state.model_copy(update={
            "base_asset_reserve": update.base_reserve,
            "quote_asset_reserve": update.quote_reserve,
            "base_asset_position": position,
        })
        self.keeper.save_pool_state(ctx, new_state)
        self.keeper.record_snapshot(ctx, new_state)
        ctx.events.emit(
            "swap_on_vpool",
            pair=self.pair,
            direction=direction.name,
            base_amount=str(update.base_amount),
            quote_amount=str(update.quote_amount),
            base_reserve=str(update.base_reserve),
            quote_reserve=str(update.quote_reserve),
        )
