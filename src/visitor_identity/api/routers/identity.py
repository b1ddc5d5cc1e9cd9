"""
visitor_identity.api.routers.identity

Page-load identity endpoint.

Responsibilities:
- Recover or create the visitor's base identity.
- Refresh the `user-identity` cookie on the response.
- Return the delegated identity wire bundle.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Response

from visitor_identity.api.deps import cookie_jar, kv_from_app, now_dep, settings_from_app
from visitor_identity.auth.cookies import SignedCookieJar
from visitor_identity.identity.wire import DelegatedIdentityWire
from visitor_identity.kv.store import KVStore
from visitor_identity.services.issuer import extract_or_generate_identity
from visitor_identity.settings import Settings

router = APIRouter(prefix="/v1/identity", tags=["identity"])


@router.post("", response_model=DelegatedIdentityWire)
async def issue_identity(
    response: Response,
    kv: KVStore = Depends(kv_from_app),
    jar: SignedCookieJar = Depends(cookie_jar),
    now: datetime = Depends(now_dep),
    settings: Settings = Depends(settings_from_app),
) -> DelegatedIdentityWire:
    # Set-Cookie headers appended to `response` are merged into the final response.
    return await extract_or_generate_identity(
        kv,
        jar,
        response.headers,
        now,
        policy=settings.identity_policy(),
    )
