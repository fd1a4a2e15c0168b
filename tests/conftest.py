"""Shared test fixtures."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import bech32
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session

from pricing_core.app import PricingApp
from pricing_core.config.schema import AppConfig
from pricing_core.db.base import Base

GENESIS_TIME = datetime(2022, 6, 1, tzinfo=timezone.utc)
ORACLE = "cosmos1qypqxpq9qcrsszg2pvxq6rs0zqg3yyc5lzv7xu"


@pytest.fixture
def db_session():
    """In-memory SQLite session with all tables created.

    SQLite has no schemas, so they are stripped from the metadata.
    """
    engine = create_engine("sqlite:///:memory:")

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, _rec):
        dbapi_conn.execute("PRAGMA foreign_keys=ON")

    for table in Base.metadata.tables.values():
        table.schema = None

    Base.metadata.create_all(engine)

    session = Session(engine)
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def make_address():
    """Factory for distinct, well-formed account addresses."""

    def _make(index: int = 0) -> str:
        return bech32.bech32_encode("cosmos", bech32.convertbits(index.to_bytes(20, "big"), 8, 5))

    return _make


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig.model_validate({
        "pricefeed": {
            "twap_lookback_s": 900,
            "markets": [
                {"base_asset": "unibi", "quote_asset": "unusd", "oracles": [ORACLE]},
                {"base_asset": "uusdc", "quote_asset": "unusd", "oracles": [ORACLE]},
                {"base_asset": "ubtc", "quote_asset": "unusd", "oracles": [ORACLE]},
            ],
        },
        "vpool": {
            "pools": [
                {
                    "pair": "ubtc:unusd",
                    "base_asset_reserve": "10000000",
                    "quote_asset_reserve": "200000000000",
                    "trade_limit_ratio": "0.1",
                    "open_interest_notional_cap": 0,
                },
            ],
        },
        "stablecoin": {"coll_ratio": "0.9"},
    })


@pytest.fixture
def pricing(app_config) -> PricingApp:
    """App with genesis applied at height 1."""
    app = PricingApp(app_config)
    app.init_genesis(app.new_context(1, GENESIS_TIME))
    return app


@pytest.fixture
def ctx(pricing):
    """Context at height 2, one minute after genesis."""
    return pricing.new_context(2, GENESIS_TIME + timedelta(minutes=1))


@pytest.fixture
def set_prices(pricing):
    """Post one oracle price per market and finalize them at ``ctx``'s block."""

    def _set(ctx, prices: dict[str, str], ttl: timedelta = timedelta(hours=1)) -> None:
        for market_id, price in prices.items():
            pricing.pricefeed.submit_price(ctx, ORACLE, market_id, Decimal(price), ctx.block_time + ttl)
        for market_id in prices:
            pricing.pricefeed.finalize_current_price(ctx, market_id)

    return _set
