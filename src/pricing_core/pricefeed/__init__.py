"""Oracle price feed — price point store, current prices and TWAP."""

from pricing_core.pricefeed.abci import end_blocker
from pricing_core.pricefeed.keeper import PricefeedKeeper
from pricing_core.pricefeed.twap import compute_twap, prune_snapshots, time_weighted_average

__all__ = [
    "PricefeedKeeper",
    "compute_twap",
    "end_blocker",
    "prune_snapshots",
    "time_weighted_average",
]
