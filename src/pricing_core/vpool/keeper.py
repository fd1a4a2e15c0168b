"""VpoolKeeper — pool creation, state persistence and reserve snapshots."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import structlog
from pydantic import BaseModel, Field

from pricing_core import fixedpoint
from pricing_core.context import Context, unix_micros
from pricing_core.errors import PoolAlreadyExists, PoolNotFound
from pricing_core.models.vpool import PoolSnapshot, PoolState
from pricing_core.pricefeed.keeper import PricefeedKeeper
from pricing_core.pricefeed.twap import prune_snapshots
from pricing_core.store import int_key
from pricing_core.vpool.base import VirtualPool
from pricing_core.vpool.registry import POOL_REGISTRY

log = structlog.get_logger("vpool_keeper")

_PARAMS_KEY = "vpool/params"
_POOLS_PREFIX = "vpool/pools/"
_SNAPSHOTS_PREFIX = "vpool/snapshots/"


class VpoolParams(BaseModel):
    twap_lookback_s: int = Field(default=900, gt=0)


class VpoolKeeper:
    def __init__(self, pricefeed: PricefeedKeeper) -> None:
        self.pricefeed = pricefeed

    # ── Params ────────────────────────────────────────────────

    def set_params(self, ctx: Context, params: VpoolParams) -> None:
        ctx.store.set(_PARAMS_KEY, params.model_dump_json())

    def get_params(self, ctx: Context) -> VpoolParams:
        raw = ctx.store.get(_PARAMS_KEY)
        return VpoolParams() if raw is None else VpoolParams.model_validate_json(raw)

    def twap_lookback(self, ctx: Context) -> timedelta:
        return timedelta(seconds=self.get_params(ctx).twap_lookback_s)

    # ── Pools ─────────────────────────────────────────────────

    def create_pool(self, ctx: Context, state: PoolState) -> VirtualPool:
        """Register a new pool (governance action) and take its first snapshot."""
        if state.curve not in POOL_REGISTRY:
            raise ValueError(f"Unknown pool curve: {state.curve!r}")
        if self.exists_pool(ctx, state.pair):
            raise PoolAlreadyExists(state.pair)
        state = state.model_copy(update={
            "base_asset_reserve": fixedpoint.to_dec(state.base_asset_reserve),
            "quote_asset_reserve": fixedpoint.to_dec(state.quote_asset_reserve),
        })
        self.save_pool_state(ctx, state)
        self.record_snapshot(ctx, state)
        ctx.events.emit(
            "pool_created", pair=state.pair, curve=state.curve,
            base_reserve=str(state.base_asset_reserve), quote_reserve=str(state.quote_asset_reserve),
        )
        log.info("pool_created", pair=state.pair, curve=state.curve)
        return self.get_pool(ctx, state.pair)

    def exists_pool(self, ctx: Context, pair: str) -> bool:
        return ctx.store.has(f"{_POOLS_PREFIX}{pair}")

    def get_pool_state(self, ctx: Context, pair: str) -> PoolState:
        raw = ctx.store.get(f"{_POOLS_PREFIX}{pair}")
        if raw is None:
            raise PoolNotFound(pair)
        return PoolState.model_validate_json(raw)

    def save_pool_state(self, ctx: Context, state: PoolState) -> None:
        ctx.store.set(f"{_POOLS_PREFIX}{state.pair}", state.model_dump_json())

    def get_pool(self, ctx: Context, pair: str) -> VirtualPool:
        state = self.get_pool_state(ctx, pair)
        return POOL_REGISTRY[state.curve](pair, self)

    def list_pools(self, ctx: Context) -> list[PoolState]:
        return [PoolState.model_validate_json(v) for _, v in ctx.store.iterate(_POOLS_PREFIX)]

    # ── Snapshots ─────────────────────────────────────────────

    def record_snapshot(self, ctx: Context, state: PoolState) -> PoolSnapshot:
        """Store the pool's reserves for this block; a later call in the same block overwrites."""
        snapshot = PoolSnapshot(
            pair=state.pair,
            base_asset_reserve=state.base_asset_reserve,
            quote_asset_reserve=state.quote_asset_reserve,
            timestamp=ctx.block_time,
            block_height=ctx.block_height,
        )
        ctx.store.set(self._snapshot_key(state.pair, snapshot), snapshot.model_dump_json())
        _, dropped = prune_snapshots(self.get_snapshots(ctx, state.pair), ctx.block_time, self.twap_lookback(ctx))
        for old in dropped:
            ctx.store.delete(self._snapshot_key(state.pair, old))
        return snapshot

    def get_snapshots(self, ctx: Context, pair: str) -> list[PoolSnapshot]:
        prefix = f"{_SNAPSHOTS_PREFIX}{pair}/"
        return [PoolSnapshot.model_validate_json(v) for _, v in ctx.store.iterate(prefix)]

    def reference_price(self, ctx: Context, state: PoolState) -> Decimal:
        """Pool price at the end of the previous block.

        Falls back to the current spot when the pool has no earlier snapshot.
        """
        for snapshot in reversed(self.get_snapshots(ctx, state.pair)):
            if snapshot.block_height < ctx.block_height:
                return fixedpoint.quo(snapshot.quote_asset_reserve, snapshot.base_asset_reserve)
        return fixedpoint.quo(state.quote_asset_reserve, state.base_asset_reserve)

    @staticmethod
    def _snapshot_key(pair: str, snapshot: PoolSnapshot) -> str:
        return f"{_SNAPSHOTS_PREFIX}{pair}/{int_key(unix_micros(snapshot.timestamp))}"
