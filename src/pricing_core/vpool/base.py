"""Virtual pool abstract base class."""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING

from pricing_core import fixedpoint
from pricing_core.context import Context
from pricing_core.models.vpool import Direction, PoolState

if TYPE_CHECKING:
    from pricing_core.vpool.keeper import VpoolKeeper


class VirtualPool(ABC):
    """Capability interface every pool curve implements.

    A pool object is a handle: state is loaded from the context's store on
    every call, so a handle stays valid across blocks and atomic branches.
    Subclasses set ``curve`` and register themselves with
    :func:`pricing_core.vpool.registry.register`.
    """

    curve: str

    def __init__(self, pair: str, keeper: VpoolKeeper) -> None:
        self._pair = pair
        self.keeper = keeper

    @property
    def pair(self) -> str:
        return self._pair

    @property
    def quote_token_denom(self) -> str:
        return self._pair.split(":", 1)[1]

    def state(self, ctx: Context) -> PoolState:
        return self.keeper.get_pool_state(ctx, self._pair)

    @abstractmethod
    def swap_input(
        self,
        ctx: Context,
        direction: Direction,
        input_amount: int,
        min_output_amount: int,
        allow_over_fluctuation: bool = False,
    ) -> int:
        """Trade an exact base amount; return the quote amount."""

    @abstractmethod
    def swap_output(
        self,
        ctx: Context,
        direction: Direction,
        exact_output: int,
        input_limit: int,
    ) -> int:
        """Trade for an exact quote amount; return the base amount required.

        An ``input_limit`` of 0 disables the limit check.
        """

    @abstractmethod
    def get_output_price(self, ctx: Context, direction: Direction, amount: int) -> int:
        ...

    @abstractmethod
    def get_output_twap(self, ctx: Context, direction: Direction, amount: int) -> int:
        ...

    @abstractmethod
    def get_spot_price(self, ctx: Context) -> Decimal:
        ...

    def get_underlying_price(self, ctx: Context) -> Decimal:
        """Oracle TWAP of the pool's pair."""
        return self.keeper.pricefeed.get_current_twap(ctx, self._pair)

    def get_open_interest_notional_cap(self, ctx: Context) -> int:
        return self.state(ctx).open_interest_notional_cap

    def get_max_holding_base_asset(self, ctx: Context) -> int:
        return self.state(ctx).max_holding_base_asset

    def is_over_spread_limit(self, ctx: Context) -> bool:
        """True if the pool price strays from the oracle TWAP beyond the limit."""
        state = self.state(ctx)
        underlying = self.get_underlying_price(ctx)
        spread = fixedpoint.quo(abs(fixedpoint.sub(self.get_spot_price(ctx), underlying)), underlying)
        return spread > state.max_oracle_spread_ratio
