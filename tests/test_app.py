"""Tests for app wiring, genesis and block boundaries."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from pricing_core.app import PricingApp
from pricing_core.config import AppConfig
from pricing_core.store import SqlStore

ORACLE = "cosmos1qypqxpq9qcrsszg2pvxq6rs0zqg3yyc5lzv7xu"
START = datetime(2022, 6, 1, tzinfo=timezone.utc)


class TestPricingApp:
    def test_genesis_emits_pool_created(self, pricing):
        assert [e.attributes["pair"] for e in pricing.events.of_type("pool_created")] == ["ubtc:unusd"]

    def test_stablecoin_denoms_from_config(self):
        cfg = AppConfig.model_validate({"stablecoin": {"stable_denom": "uusd", "gov_denom": "ugov"}})
        app = PricingApp(cfg)
        assert app.stablecoin.denoms.stable == "uusd"
        assert app.stablecoin.denoms.gov_market == "ugov:uusd"

    def test_latest_context_before_first_block(self, pricing):
        assert pricing.latest_context().block_height == 0

    def test_latest_context_tracks_end_block(self, pricing, ctx):
        pricing.end_block(ctx)
        latest = pricing.latest_context()
        assert latest.block_height == ctx.block_height
        assert latest.block_time == ctx.block_time

    def test_end_block_finalizes_and_snapshots(self, pricing, ctx):
        pricing.pricefeed.submit_price(ctx, ORACLE, "unibi:unusd", Decimal("3"), ctx.block_time + timedelta(hours=1))
        pricing.end_block(ctx)
        assert pricing.pricefeed.get_current_price(ctx, "unibi:unusd").block_height == ctx.block_height
        assert pricing.vpool.get_snapshots(ctx, "ubtc:unusd")[-1].block_height == ctx.block_height


class TestSqlBackedApp:
    def test_from_config_runs_blocks_against_sqlite(self, app_config):
        pricing = PricingApp.from_config(app_config)
        assert isinstance(pricing.store, SqlStore)

        genesis = pricing.new_context(1, START)
        pricing.init_genesis(genesis)
        for height in range(2, 5):
            ctx = pricing.new_context(height, START + timedelta(seconds=10 * height))
            pricing.pricefeed.submit_price(ctx, ORACLE, "unibi:unusd", Decimal(height), ctx.block_time + timedelta(hours=1))
            pricing.end_block(ctx)

        latest = pricing.latest_context()
        assert latest.block_height == 4
        # 10s of 2 and 10s of 3; the 4 was posted at `now`
        assert pricing.pricefeed.get_current_twap(latest, "unibi:unusd") == Decimal("2.5")
        assert pricing.vpool.get_pool(latest, "ubtc:unusd").get_spot_price(latest) == Decimal("20000")
