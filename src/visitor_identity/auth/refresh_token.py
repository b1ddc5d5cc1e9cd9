"""
visitor_identity.auth.refresh_token

Refresh-token codec.

Responsibilities:
- Encode `{principal, expiry_epoch_ms}` as the JSON payload of the refresh cookie.
- Decode it back, collapsing malformed and expired tokens into "no token".

Note:
- Signature checks happen in the cookie layer (`auth.cookies`), not here.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from pydantic import BaseModel, ValidationError

from visitor_identity.clock import epoch_ms
from visitor_identity.consts import REFRESH_EXPIRY
from visitor_identity.identity.principal import InvalidPrincipalError, Principal


class RefreshToken(BaseModel):
    principal: str
    expiry_epoch_ms: int


def encode(principal: Principal, now: datetime, *, expiry: timedelta = REFRESH_EXPIRY) -> str:
    # Each issuance replaces the token outright; expiry is never extended in place.
    token = RefreshToken(principal=principal.to_text(), expiry_epoch_ms=epoch_ms(now + expiry))
    return token.model_dump_json()


def decode(value: str, now: datetime) -> Principal | None:
    try:
        token = RefreshToken.model_validate_json(value)
        principal = Principal.from_text(token.principal)
    except (ValidationError, InvalidPrincipalError):
        return None
    # The expiry instant itself already counts as expired.
    if epoch_ms(now) >= token.expiry_epoch_ms:
        return None
    return principal
