"""Block-boundary hook for virtual pools."""

from __future__ import annotations

from pricing_core.context import Context
from pricing_core.models.vpool import PoolSnapshot
from pricing_core.vpool.keeper import VpoolKeeper


def end_blocker(ctx: Context, keeper: VpoolKeeper) -> list[PoolSnapshot]:
    """Snapshot every pool so its TWAP advances even in blocks without trades."""
    return [keeper.record_snapshot(ctx, state) for state in keeper.list_pools(ctx)]
