"""
visitor_identity.db.models

Persistence schema for the SQL KVStore.

Responsibilities:
- Define `KVEntry`: one row per key holding an opaque string value
  (private JWKs under principal text, metadata JSON under `<principal>-metadata`).
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from visitor_identity.db.base import Base


def _utcnow() -> datetime:
    return datetime.utcnow()


class KVEntry(Base):
    __tablename__ = "kv_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)

    # No eviction policy exists; timestamps are kept so one can be added later.
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)
