"""Database engine for the state store."""

from __future__ import annotations

from sqlalchemy import Engine, create_engine

from pricing_core.db.tables.state import SCHEMA

_engine: Engine | None = None


def _ensure_psycopg_driver(url: str) -> str:
    """Rewrite postgresql:// to postgresql+psycopg:// for psycopg v3."""
    if url.startswith("postgresql://"):
        return "postgresql+psycopg://" + url[len("postgresql://"):]
    return url


def init_engine(url: str, **kwargs) -> Engine:
    """Create the global engine.

    SQLite has no schemas, so state tables are mapped to its default one.
    """
    global _engine
    url = _ensure_psycopg_driver(url)
    if url.startswith("sqlite"):
        options = dict(kwargs.pop("execution_options", {}))
        options.setdefault("schema_translate_map", {SCHEMA: None})
        kwargs["execution_options"] = options
    _engine = create_engine(url, **kwargs)
    return _engine


def get_engine() -> Engine:
    """Return the global engine (must call init_engine first)."""
    if _engine is None:
        raise RuntimeError("Database engine not initialised, call init_engine() first")
    return _engine
