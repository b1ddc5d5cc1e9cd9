"""
visitor_identity.services.resolver

Base-identity recovery and creation.

Responsibilities:
- Recover a visitor's base identity from the refresh cookie + KVStore.
- Generate and persist a new base identity when none can be recovered.

Outcomes of `try_extract_identity`:
- No cookie, bad signature, malformed or expired token, or KV miss -> None.
- Stored key present but unreadable -> `KeyDecodeError` (data-integrity problem).
"""

from __future__ import annotations

from datetime import datetime

from visitor_identity.auth import refresh_token
from visitor_identity.auth.cookies import SignedCookieJar
from visitor_identity.consts import REFRESH_TOKEN_COOKIE
from visitor_identity.identity.keys import BaseIdentity
from visitor_identity.identity.principal import Principal
from visitor_identity.kv.store import KVStore
from visitor_identity.observability.logging import get_logger

log = get_logger(__name__)


def extract_principal_from_cookie(
    jar: SignedCookieJar,
    now: datetime,
    *,
    cookie_name: str = REFRESH_TOKEN_COOKIE,
) -> Principal | None:
    value = jar.get(cookie_name)
    if value is None:
        return None
    return refresh_token.decode(value, now)


async def fetch_identity_from_kv(kv: KVStore, principal: Principal) -> BaseIdentity | None:
    jwk = await kv.read(principal.to_text())
    if jwk is None:
        return None
    return BaseIdentity.from_jwk(jwk)


async def try_extract_identity(
    jar: SignedCookieJar,
    kv: KVStore,
    now: datetime,
    *,
    cookie_name: str = REFRESH_TOKEN_COOKIE,
) -> BaseIdentity | None:
    principal = extract_principal_from_cookie(jar, now, cookie_name=cookie_name)
    if principal is None:
        return None

    identity = await fetch_identity_from_kv(kv, principal)
    if identity is None:
        log.info("identity_missing_in_kv", principal=principal.to_text())
        return None
    log.info("identity_recovered", principal=principal.to_text())
    return identity


async def generate_and_save_identity(kv: KVStore) -> BaseIdentity:
    # Principal collisions are cryptographically negligible and not guarded.
    # Two concurrent first visits from one browser can each persist a key; the
    # cookie written last decides which one the visitor keeps.
    identity = BaseIdentity.generate()
    principal = identity.principal()
    await kv.write(principal.to_text(), identity.to_jwk())
    log.info("identity_generated", principal=principal.to_text())
    return identity
