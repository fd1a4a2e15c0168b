"""Database layer: engine and ORM base."""

from pricing_core.db.base import Base
from pricing_core.db.engine import get_engine, init_engine

__all__ = ["Base", "get_engine", "init_engine"]
