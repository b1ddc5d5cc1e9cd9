"""
visitor_identity.db.repositories.kv_entries

Repository for `KVEntry` rows.

Responsibilities:
- Point lookups by key.
- Create-or-overwrite writes (last write wins) as a single INSERT ... ON CONFLICT
  statement, so concurrent writers to a new key never collide on the primary key.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from visitor_identity.db.models import KVEntry

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class KVEntryRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, key: str) -> KVEntry | None:
        return await self._session.get(KVEntry, key)

    async def upsert(self, *, key: str, value: str) -> None:
        dialect = self._session.bind.dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            raise NotImplementedError(f"upsert is not supported on {dialect!r}")

        # Core statements skip ORM column defaults; set timestamps explicitly.
        now = datetime.utcnow()
        stmt = insert(KVEntry).values(key=key, value=value, created_at=now, updated_at=now)
        stmt = stmt.on_conflict_do_update(
            index_elements=[KVEntry.key],
            set_={"value": stmt.excluded.value, "updated_at": stmt.excluded.updated_at},
        )
        await self._session.execute(stmt)
