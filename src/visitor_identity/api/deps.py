"""
visitor_identity.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide settings, the shared KVStore, the signed cookie jar and "now".
- Parse principal path parameters.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import Depends, HTTPException, Request

from visitor_identity.auth.cookies import SignedCookieJar
from visitor_identity.clock import utc_now
from visitor_identity.identity.principal import InvalidPrincipalError, Principal
from visitor_identity.kv.store import KVStore
from visitor_identity.settings import Settings


def kv_from_app(request: Request) -> KVStore:
    # The store is created in the app lifespan (`visitor_identity.api.app.create_app`).
    return request.app.state.kv  # type: ignore[attr-defined]


def settings_from_app(request: Request) -> Settings:
    return request.app.state.settings  # type: ignore[attr-defined]


def cookie_jar(
    request: Request,
    settings: Settings = Depends(settings_from_app),
) -> SignedCookieJar:
    return SignedCookieJar(
        key=settings.cookie_signing_key.encode("utf-8"),
        cookies=request.cookies,
    )


def now_dep() -> datetime:
    # Overridden in tests to pin the clock.
    return utc_now()


def principal_path(principal: str) -> Principal:
    try:
        return Principal.from_text(principal)
    except InvalidPrincipalError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
