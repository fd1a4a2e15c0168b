"""FastAPI application — read-only queries over pricing state."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel

from pricing_core.app import PricingApp
from pricing_core.context import Context
from pricing_core.errors import (
    InsufficientHistory,
    InvalidParams,
    NoValidPrices,
    PoolNotFound,
    UnknownMarket,
)
from pricing_core.models.vpool import Direction

logger = structlog.get_logger("api")


class TWAPResponse(BaseModel):
    market_id: str
    twap: Decimal
    lookback_s: int
    block_height: int


class CurrentPriceResponse(BaseModel):
    market_id: str
    price: Decimal
    timestamp: datetime
    block_height: int


class PoolPriceResponse(BaseModel):
    pair: str
    spot_price: Decimal
    base_asset_reserve: Decimal
    quote_asset_reserve: Decimal
    base_asset_position: Decimal
    output_twap: Optional[int] = None


class StablecoinStateResponse(BaseModel):
    coll_ratio: Decimal
    fee_ratio: Decimal
    ef_fee_ratio: Decimal
    bonus_rate_recoll: Decimal
    supply_stable: int
    supply_gov: int


def create_app(pricing: PricingApp) -> FastAPI:
    """Build the query API over *pricing*; no route mutates state."""
    app = FastAPI(
        title="Pricing Core Query API",
        description="Oracle TWAP, virtual pool and stablecoin queries",
        version="0.1.0",
    )

    def get_ctx() -> Context:
        """Dependency: context at the last ended block."""
        return pricing.latest_context()

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.get("/api/pricefeed/{market_id}/twap", response_model=TWAPResponse)
    async def get_twap(market_id: str, lookback_s: Optional[int] = None, ctx: Context = Depends(get_ctx)):
        """TWAP of an oracle market over the configured (or a shorter) lookback."""
        lookback = None if lookback_s is None else timedelta(seconds=lookback_s)
        try:
            twap = pricing.pricefeed.get_current_twap(ctx, market_id, lookback)
        except UnknownMarket:
            raise HTTPException(status_code=404, detail=f"Market {market_id!r} not found")
        except InvalidParams as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        except InsufficientHistory as exc:
            raise HTTPException(status_code=409, detail=str(exc))
        if lookback_s is None:
            lookback_s = pricing.pricefeed.get_params(ctx).twap_lookback_s
        return TWAPResponse(market_id=market_id, twap=twap, lookback_s=lookback_s, block_height=ctx.block_height)

    @app.get("/api/pricefeed/{market_id}/price", response_model=CurrentPriceResponse)
    async def get_current_price(market_id: str, ctx: Context = Depends(get_ctx)):
        """Most recently finalized price of a market."""
        try:
            current = pricing.pricefeed.get_current_price(ctx, market_id)
        except UnknownMarket:
            raise HTTPException(status_code=404, detail=f"Market {market_id!r} not found")
        except NoValidPrices as exc:
            raise HTTPException(status_code=409, detail=str(exc))
        return CurrentPriceResponse(
            market_id=market_id,
            price=current.price,
            timestamp=current.timestamp,
            block_height=current.block_height,
        )

    @app.get("/api/vpool/{pair}", response_model=PoolPriceResponse)
    async def get_pool_price(pair: str, base_amount: Optional[int] = None, ctx: Context = Depends(get_ctx)):
        """Spot price and reserves of a pool.

        With ``base_amount``, also the time-weighted quote output for adding
        that much base to the pool.
        """
        try:
            pool = pricing.vpool.get_pool(ctx, pair)
        except PoolNotFound:
            raise HTTPException(status_code=404, detail=f"Pool {pair!r} not found")
        state = pool.state(ctx)
        output_twap = None
        if base_amount is not None:
            if base_amount < 0:
                raise HTTPException(status_code=400, detail="base_amount must be non-negative")
            output_twap = pool.get_output_twap(ctx, Direction.ADD_TO_AMM, base_amount)
        return PoolPriceResponse(
            pair=pair,
            spot_price=pool.get_spot_price(ctx),
            base_asset_reserve=state.base_asset_reserve,
            quote_asset_reserve=state.quote_asset_reserve,
            base_asset_position=state.base_asset_position,
            output_twap=output_twap,
        )

    @app.get("/api/stablecoin", response_model=StablecoinStateResponse)
    async def get_stablecoin_state(ctx: Context = Depends(get_ctx)):
        """Collateral ratio, fee params and token supplies."""
        params = pricing.stablecoin.get_params(ctx)
        return StablecoinStateResponse(
            coll_ratio=params.coll_ratio,
            fee_ratio=params.fee_ratio,
            ef_fee_ratio=params.ef_fee_ratio,
            bonus_rate_recoll=params.bonus_rate_recoll,
            supply_stable=pricing.stablecoin.get_supply_stable(ctx).amount,
            supply_gov=pricing.stablecoin.get_supply_gov(ctx).amount,
        )

    logger.info("query_api_created", routes=len(app.routes))
    return app
