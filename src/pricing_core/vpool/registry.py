"""Pool curve registry — decorated classes are auto-registered by curve type."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pricing_core.vpool.base import VirtualPool

POOL_REGISTRY: dict[str, type[VirtualPool]] = {}


def register(cls: type[VirtualPool]) -> type[VirtualPool]:
    """Class decorator that adds a pool curve type to the global registry."""
    if not hasattr(cls, "curve") or not cls.curve:
        raise ValueError(f"Pool class {cls.__name__} must define a 'curve' attribute")
    if cls.curve in POOL_REGISTRY:
        raise ValueError(f"Duplicate pool curve: {cls.curve!r}")
    POOL_REGISTRY[cls.curve] = cls
    return cls
