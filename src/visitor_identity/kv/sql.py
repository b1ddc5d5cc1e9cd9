"""
visitor_identity.kv.sql

SQLAlchemy-backed KVStore.

Responsibilities:
- Run each read/write in its own short session and transaction.
- Translate SQLAlchemy failures into `StorageError`.
"""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from visitor_identity.db.repositories.kv_entries import KVEntryRepo
from visitor_identity.errors import StorageError
from visitor_identity.kv.store import KVStore


class SqlKVStore(KVStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def read(self, key: str) -> str | None:
        try:
            async with self._session_factory() as session:
                entry = await KVEntryRepo(session).get(key)
                return None if entry is None else entry.value
        except SQLAlchemyError as e:
            raise StorageError(f"read failed for {key!r}") from e

    async def write(self, key: str, value: str) -> None:
        try:
            async with self._session_factory() as session:
                await KVEntryRepo(session).upsert(key=key, value=value)
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"write failed for {key!r}") from e


# --- Module Notes -----------------------------------------------------------
# Each operation commits on its own session; a completed write is the only
# durability boundary the identity flow has.
