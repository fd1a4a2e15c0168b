"""PricefeedKeeper — oracle submissions, per-block price reduction, TWAP queries."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation

from pricing_core import fixedpoint
from pricing_core.context import Context, unix_micros
from pricing_core.errors import (
    InactiveMarket,
    InvalidParams,
    InvalidPrice,
    NoValidPrices,
    Unauthorized,
    UnknownMarket,
)
from pricing_core.logging import get_logger
from pricing_core.models.pricefeed import CurrentPrice, Market, PricefeedParams, PricePoint
from pricing_core.pricefeed.twap import compute_twap, prune_snapshots
from pricing_core.store import int_key

log = get_logger("pricefeed")

_PARAMS_KEY = "pricefeed/params"
_NEXT_ID_KEY = "pricefeed/next_point_id"
_POINTS_PREFIX = "pricefeed/points/"
_CURRENT_PREFIX = "pricefeed/current/"
_SNAPSHOTS_PREFIX = "pricefeed/snapshots/"


def median(prices: list[Decimal]) -> Decimal:
    """Order-independent median; mean of the middle pair for even counts."""
    if not prices:
        raise ValueError("median of empty list")
    ordered = sorted(prices)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 1:
        return fixedpoint.to_dec(ordered[mid])
    return fixedpoint.quo(fixedpoint.add(ordered[mid - 1], ordered[mid]), 2)


class PricefeedKeeper:
    """Owns markets, their price points and their current-price history."""

    # ── Params ────────────────────────────────────────────────

    def set_params(self, ctx: Context, params: PricefeedParams) -> None:
        ids = [m.market_id for m in params.markets]
        if len(ids) != len(set(ids)):
            raise InvalidParams("duplicate market ids in pricefeed params")
        ctx.store.set(_PARAMS_KEY, params.model_dump_json())
        log.info("pricefeed_params_set", markets=ids, twap_lookback_s=params.twap_lookback_s)

    def get_params(self, ctx: Context) -> PricefeedParams:
        raw = ctx.store.get(_PARAMS_KEY)
        if raw is None:
            return PricefeedParams()
        return PricefeedParams.model_validate_json(raw)

    def get_markets(self, ctx: Context) -> list[Market]:
        return self.get_params(ctx).markets

    def get_market(self, ctx: Context, market_id: str) -> Market:
        for market in self.get_markets(ctx):
            if market.market_id == market_id:
                return market
        raise UnknownMarket(market_id)

    def is_oracle(self, ctx: Context, market_id: str, oracle: str) -> bool:
        return oracle in self.get_market(ctx, market_id).oracles

    # ── Submission ────────────────────────────────────────────

    def submit_price(
        self,
        ctx: Context,
        oracle: str,
        market_id: str,
        price: Decimal | str,
        expiry: datetime,
    ) -> int:
        """Append an oracle price point and return its id.

        Does not touch the current price; that happens once per block in
        ``finalize_current_price``.
        """
        market = self.get_market(ctx, market_id)
        if not market.active:
            raise InactiveMarket(market_id)
        if oracle not in market.oracles:
            raise Unauthorized(oracle, market_id)

        try:
            price_dec = fixedpoint.to_dec(price)
        except InvalidOperation as exc:
            raise InvalidPrice(f"price {price!r} is not a decimal number") from exc
        if not price_dec.is_finite():
            raise InvalidPrice(f"price must be finite, got {price_dec}")
        if price_dec <= 0:
            raise InvalidPrice(f"price must be positive, got {price_dec}")
        if expiry <= ctx.block_time:
            raise InvalidPrice(f"expiry {expiry.isoformat()} is not after {ctx.block_time.isoformat()}")

        point_id = int(ctx.store.get(_NEXT_ID_KEY) or 1)
        point = PricePoint(
            id=point_id,
            market_id=market_id,
            oracle=oracle,
            price=price_dec,
            timestamp=ctx.block_time,
            expiry=expiry,
        )
        ctx.store.set(self._point_key(market_id, point_id), point.model_dump_json())
        ctx.store.set(_NEXT_ID_KEY, str(point_id + 1))

        ctx.events.emit(
            "price_posted", market_id=market_id, oracle=oracle,
            price=str(price_dec), expiry=expiry.isoformat(),
        )
        self._log(ctx, market_id).debug("price_posted", oracle=oracle, price=price_dec, point_id=point_id)
        return point_id

    def get_price_points(self, ctx: Context, market_id: str) -> list[PricePoint]:
        prefix = f"{_POINTS_PREFIX}{market_id}/"
        return [PricePoint.model_validate_json(v) for _, v in ctx.store.iterate(prefix)]

    # ── Finalize ──────────────────────────────────────────────

    def finalize_current_price(self, ctx: Context, market_id: str) -> CurrentPrice:
        """Reduce all valid price points to the median and record a snapshot.

        Only the newest non-expired point of each oracle counts. Points that
        are expired or superseded are pruned, as are snapshots that no
        future TWAP query within the lookback window can reach.
        """
        market = self.get_market(ctx, market_id)
        if not market.active:
            raise InactiveMarket(market_id)
        now = ctx.block_time

        latest_by_oracle: dict[str, PricePoint] = {}
        stale: list[PricePoint] = []
        for point in self.get_price_points(ctx, market_id):
            if point.expiry <= now:
                stale.append(point)
                continue
            if point.timestamp > now:
                continue
            previous = latest_by_oracle.get(point.oracle)
            if previous is not None:
                stale.append(previous)
            latest_by_oracle[point.oracle] = point

        if not latest_by_oracle:
            raise NoValidPrices(market_id)

        for point in stale:
            ctx.store.delete(self._point_key(market_id, point.id))

        valid = list(latest_by_oracle.values())
        current = CurrentPrice(
            market_id=market_id,
            price=median([p.price for p in valid]),
            timestamp=now,
            block_height=ctx.block_height,
            expiry=max(p.expiry for p in valid),
        )
        ctx.store.set(f"{_CURRENT_PREFIX}{market_id}", current.model_dump_json())
        ctx.store.set(self._snapshot_key(market_id, now), current.model_dump_json())
        self._prune_snapshots(ctx, market_id, now)

        ctx.events.emit(
            "current_price_updated", market_id=market_id,
            price=str(current.price), oracles=len(valid),
        )
        self._log(ctx, market_id).debug("current_price_updated", price=current.price, oracles=len(valid))
        return current

    def get_current_price(self, ctx: Context, market_id: str) -> CurrentPrice:
        raw = ctx.store.get(f"{_CURRENT_PREFIX}{market_id}")
        if raw is None:
            self.get_market(ctx, market_id)
            raise NoValidPrices(market_id)
        return CurrentPrice.model_validate_json(raw)

    # ── TWAP ──────────────────────────────────────────────────

    def get_snapshots(self, ctx: Context, market_id: str) -> list[CurrentPrice]:
        prefix = f"{_SNAPSHOTS_PREFIX}{market_id}/"
        return [CurrentPrice.model_validate_json(v) for _, v in ctx.store.iterate(prefix)]

    def get_current_twap(
        self,
        ctx: Context,
        market_id: str,
        lookback: timedelta | None = None,
    ) -> Decimal:
        """TWAP of the market's current-price history as of the block time.

        *lookback* defaults to, and may not exceed, the configured window
        since older history is pruned.
        """
        self.get_market(ctx, market_id)
        supported = timedelta(seconds=self.get_params(ctx).twap_lookback_s)
        if lookback is None:
            lookback = supported
        elif lookback > supported or lookback <= timedelta(0):
            raise InvalidParams(f"lookback {lookback} outside (0, {supported}]")
        return compute_twap(self.get_snapshots(ctx, market_id), ctx.block_time, lookback, key=market_id)

    # ── Internals ─────────────────────────────────────────────

    def _prune_snapshots(self, ctx: Context, market_id: str, now: datetime) -> None:
        lookback = timedelta(seconds=self.get_params(ctx).twap_lookback_s)
        _, dropped = prune_snapshots(self.get_snapshots(ctx, market_id), now, lookback)
        for snapshot in dropped:
            ctx.store.delete(self._snapshot_key(market_id, snapshot.timestamp))
        if dropped:
            self._log(ctx, market_id).debug("snapshots_pruned", count=len(dropped))

    @staticmethod
    def _log(ctx: Context, market_id: str):
        return get_logger("pricefeed", market_id=market_id, block_height=ctx.block_height)

    @staticmethod
    def _point_key(market_id: str, point_id: int) -> str:
        return f"{_POINTS_PREFIX}{market_id}/{int_key(point_id)}"

    @staticmethod
    def _snapshot_key(market_id: str, timestamp: datetime) -> str:
        return f"{_SNAPSHOTS_PREFIX}{market_id}/{int_key(unix_micros(timestamp))}"
