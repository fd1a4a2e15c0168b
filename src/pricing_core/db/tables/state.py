"""SQLAlchemy ORM model for the pricing_state schema."""

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from pricing_core.db.base import Base

SCHEMA = "pricing_state"


class KVEntryRow(Base):
    """One entry of the ordered key-value state store."""

    __tablename__ = "kv_entries"
    __table_args__ = {"schema": SCHEMA}

    key: Mapped[str] = mapped_column(Text, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
