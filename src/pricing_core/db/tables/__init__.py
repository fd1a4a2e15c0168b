"""Import all table modules so Base.metadata knows about them."""

from pricing_core.db.tables.state import KVEntryRow

__all__ = ["KVEntryRow"]
