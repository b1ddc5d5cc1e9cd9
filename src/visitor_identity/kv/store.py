"""
visitor_identity.kv.store

KVStore contract.

Responsibilities:
- Declare the string-valued `read`/`write` operations every backend implements.
- Implement the typed JSON metadata wrappers once, on top of `read`/`write`.

Guarantees:
- Per-key atomicity of a single read or write; concurrent writers are last-write-wins.
- No locks are held across read-modify-write sequences.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from visitor_identity.errors import DecodeError, EncodeError

UserMetadata = dict[str, Any]

_metadata_adapter: TypeAdapter[UserMetadata] = TypeAdapter(UserMetadata)


class KVStore(ABC):
    @abstractmethod
    async def read(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""

    @abstractmethod
    async def write(self, key: str, value: str) -> None:
        """Create or overwrite `key`."""

    async def read_json_metadata(self, key: str) -> UserMetadata | None:
        raw = await self.read(key)
        if raw is None:
            return None
        try:
            return _metadata_adapter.validate_json(raw)
        except ValidationError as e:
            raise DecodeError(f"metadata under {key!r} is not a JSON object") from e

    async def write_json_metadata(self, key: str, value: UserMetadata) -> None:
        try:
            encoded = _metadata_adapter.dump_json(value).decode("utf-8")
        except PydanticSerializationError as e:
            raise EncodeError(f"metadata for {key!r} is not JSON-serializable") from e
        await self.write(key, encoded)
