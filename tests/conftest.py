"""
tests.conftest

Shared fixtures: a fixed clock, an in-memory KVStore and an empty cookie jar
keyed with the test signing key.
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from visitor_identity.auth.cookies import SignedCookieJar
from visitor_identity.kv.memory import InMemoryKVStore

SIGNING_KEY = b"test-cookie-signing-key-0123456789abcdef"


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def kv() -> InMemoryKVStore:
    return InMemoryKVStore()


@pytest.fixture
def empty_jar() -> SignedCookieJar:
    return SignedCookieJar(key=SIGNING_KEY)


def cookie_value(set_cookie_header: str) -> str:
    # "name=value; Path=/; ..." -> "value"
    return set_cookie_header.split(";", 1)[0].split("=", 1)[1]
