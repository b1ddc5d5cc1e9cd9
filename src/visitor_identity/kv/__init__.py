"""
visitor_identity.kv

Async key-value persistence for secret material and per-principal metadata.

Responsibilities:
- Define the `KVStore` contract and its JSON metadata wrappers.
- Provide in-memory and SQL-backed implementations.
"""

from visitor_identity.kv.memory import InMemoryKVStore
from visitor_identity.kv.sql import SqlKVStore
from visitor_identity.kv.store import KVStore, UserMetadata

__all__ = ["InMemoryKVStore", "KVStore", "SqlKVStore", "UserMetadata"]
