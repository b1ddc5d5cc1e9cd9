"""
visitor_identity.services.issuer

Delegation issuance and the per-request identity entry point.

Responsibilities:
- Refresh the visitor's signed refresh-token cookie.
- Delegate from the base identity to a fresh session identity.
- Compose resolver + issuer into `extract_or_generate_identity`, the single
  entry point page-load handlers call.

State per visitor:
    NoIdentity -> BaseIdentityPersisted (first generation, the only irreversible step)
    BaseIdentityPersisted -> SessionDelegated (every request; stored state unchanged)
"""

from __future__ import annotations

from datetime import datetime

from visitor_identity.auth import refresh_token
from visitor_identity.auth.cookies import Cookie, HeaderSink, SignedCookieJar
from visitor_identity.identity.keys import AnyIdentity
from visitor_identity.identity.wire import DelegatedIdentityWire
from visitor_identity.kv.store import KVStore
from visitor_identity.observability.logging import bind_principal, get_logger
from visitor_identity.services.resolver import generate_and_save_identity, try_extract_identity
from visitor_identity.settings import IdentityPolicy

log = get_logger(__name__)

_DEFAULT_POLICY = IdentityPolicy()


def delegate(
    identity: AnyIdentity,
    now: datetime,
    *,
    policy: IdentityPolicy = _DEFAULT_POLICY,
) -> DelegatedIdentityWire:
    wire = DelegatedIdentityWire.delegate(identity, now, expiry=policy.delegation_expiry)
    log.info(
        "identity_delegated",
        principal=identity.principal().to_text(),
        expiration_ns=wire.delegation_chain[0].delegation.expiration,
    )
    return wire


def refresh_cookie(identity: AnyIdentity, now: datetime, *, policy: IdentityPolicy) -> Cookie:
    token = refresh_token.encode(identity.principal(), now, expiry=policy.refresh_expiry)
    return Cookie(
        name=policy.cookie_name,
        value=token,
        http_only=True,
        secure=policy.cookie_secure,
        same_site="none",
        max_age=int(policy.refresh_expiry.total_seconds()),
    )


async def update_user_identity(
    headers: HeaderSink,
    jar: SignedCookieJar,
    identity: AnyIdentity,
    now: datetime,
    *,
    policy: IdentityPolicy = _DEFAULT_POLICY,
) -> DelegatedIdentityWire:
    jar = jar.add(refresh_cookie(identity, now, policy=policy))
    jar.write_to(headers)
    return delegate(identity, now, policy=policy)


async def extract_or_generate_identity(
    kv: KVStore,
    jar: SignedCookieJar,
    headers: HeaderSink,
    now: datetime,
    *,
    policy: IdentityPolicy = _DEFAULT_POLICY,
) -> DelegatedIdentityWire:
    base = await try_extract_identity(jar, kv, now, cookie_name=policy.cookie_name)
    if base is None:
        base = await generate_and_save_identity(kv)
    bind_principal(base.principal().to_text())
    return await update_user_identity(headers, jar, base, now, policy=policy)


# --- Module Notes -----------------------------------------------------------
# The base private key lives only in this call's frame; nothing caches it across requests.
