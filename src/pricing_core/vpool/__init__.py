"""Virtual AMM pools."""

from pricing_core.vpool.abci import end_blocker
from pricing_core.vpool.base import VirtualPool
from pricing_core.vpool.constant_product import ConstantProductPool
from pricing_core.vpool.keeper import VpoolKeeper, VpoolParams
from pricing_core.vpool.registry import POOL_REGISTRY, register

__all__ = [
    "POOL_REGISTRY",
    "ConstantProductPool",
    "VirtualPool",
    "VpoolKeeper",
    "VpoolParams",
    "end_blocker",
    "register",
]
