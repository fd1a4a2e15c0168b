"""PricingApp — wires the keepers together and drives block boundaries."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.orm import Session

from pricing_core.bank import BankKeeper
from pricing_core.config.schema import AppConfig
from pricing_core.context import Context, from_unix_micros, unix_micros
from pricing_core.db.base import Base
from pricing_core.db.engine import init_engine
from pricing_core.events import EventManager
from pricing_core.logging import block_context, get_logger
from pricing_core.models.pricefeed import PricefeedParams
from pricing_core.models.stablecoin import StablecoinParams
from pricing_core.pricefeed import end_blocker as pricefeed_end_blocker
from pricing_core.pricefeed.keeper import PricefeedKeeper
from pricing_core.stablecoin.keeper import Denoms, StablecoinKeeper
from pricing_core.store import KVStore, MemoryStore, SqlStore
from pricing_core.vpool import end_blocker as vpool_end_blocker
from pricing_core.vpool.keeper import VpoolKeeper, VpoolParams

log = get_logger("app")

_LAST_BLOCK_KEY = "app/last_block"


def open_sql_store(url: str) -> SqlStore:
    """Create the engine, the state table and a store bound to one session."""
    engine = init_engine(url)
    Base.metadata.create_all(engine)
    return SqlStore(Session(engine))


class PricingApp:
    def __init__(self, config: AppConfig | None = None, store: KVStore | None = None) -> None:
        self.config = config or AppConfig()
        self.store = store if store is not None else MemoryStore()
        self.events = EventManager()

        sc = self.config.stablecoin
        self.bank = BankKeeper()
        self.pricefeed = PricefeedKeeper()
        self.vpool = VpoolKeeper(self.pricefeed)
        self.stablecoin = StablecoinKeeper(
            self.bank,
            self.pricefeed,
            Denoms(stable=sc.stable_denom, collateral=sc.collateral_denom, gov=sc.gov_denom),
        )

    @classmethod
    def from_config(cls, config: AppConfig) -> PricingApp:
        return cls(config, open_sql_store(config.database.url))

    def new_context(self, block_height: int, block_time: datetime) -> Context:
        return Context(block_height=block_height, block_time=block_time, store=self.store, events=self.events)

    def init_genesis(self, ctx: Context) -> None:
        """Load markets, pools and stablecoin params from config into state."""
        pf = self.config.pricefeed
        self.pricefeed.set_params(ctx, PricefeedParams(
            markets=list(pf.markets),
            twap_lookback_s=pf.twap_lookback_s,
        ))
        self.vpool.set_params(ctx, VpoolParams(twap_lookback_s=self.config.vpool.twap_lookback_s))
        for pool in self.config.vpool.pools:
            self.vpool.create_pool(ctx, pool)
        sc = self.config.stablecoin
        self.stablecoin.set_params(ctx, StablecoinParams(
            coll_ratio=sc.coll_ratio,
            fee_ratio=sc.fee_ratio,
            ef_fee_ratio=sc.ef_fee_ratio,
            bonus_rate_recoll=sc.bonus_rate_recoll,
        ))
        log.info(
            "genesis_initialised",
            markets=len(pf.markets), pools=len(self.config.vpool.pools),
            block_height=ctx.block_height,
        )

    def end_block(self, ctx: Context) -> None:
        """Block boundary: finalize oracle prices, then snapshot pools."""
        with block_context(ctx.block_height, ctx.block_time):
            finalized = pricefeed_end_blocker(ctx, self.pricefeed)
            snapshots = vpool_end_blocker(ctx, self.vpool)
            log.debug(
                "block_ended",
                prices_finalized=len(finalized),
                pools_snapshotted=len(snapshots),
            )
        ctx.store.set(_LAST_BLOCK_KEY, f"{ctx.block_height}:{unix_micros(ctx.block_time)}")

    def latest_context(self) -> Context:
        """Read-only context positioned at the last ended block.

        Before the first block ends, height 0 at the current wall-clock time.
        """
        raw = self.store.get(_LAST_BLOCK_KEY)
        if raw is None:
            return self.new_context(0, datetime.now(timezone.utc))
        height, micros = raw.split(":")
        return self.new_context(int(height), from_unix_micros(int(micros)))
