"""
visitor_identity.kv.memory

Process-local KVStore, used by tests and `kv_backend=memory` dev runs.
"""

from __future__ import annotations

from visitor_identity.kv.store import KVStore


class InMemoryKVStore(KVStore):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self.writes = 0

    async def read(self, key: str) -> str | None:
        return self._data.get(key)

    async def write(self, key: str, value: str) -> None:
        self._data[key] = value
        self.writes += 1

    def keys(self) -> list[str]:
        return list(self._data)
