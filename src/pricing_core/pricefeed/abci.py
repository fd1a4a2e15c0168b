"""Block-boundary hook for the price feed."""

from __future__ import annotations

import structlog

from pricing_core.context import Context
from pricing_core.errors import NoValidPrices
from pricing_core.models.pricefeed import CurrentPrice
from pricing_core.pricefeed.keeper import PricefeedKeeper

log = structlog.get_logger("pricefeed_abci")


def end_blocker(ctx: Context, keeper: PricefeedKeeper) -> list[CurrentPrice]:
    """Finalize the current price of every active market once per block.

    A market without valid prices keeps its previous history and is skipped.
    """
    finalized: list[CurrentPrice] = []
    for market in keeper.get_markets(ctx):
        if not market.active:
            continue
        try:
            finalized.append(keeper.finalize_current_price(ctx, market.market_id))
        except NoValidPrices:
            log.warning(
                "no_valid_prices",
                market_id=market.market_id,
                block_height=ctx.block_height,
            )
    return finalized
