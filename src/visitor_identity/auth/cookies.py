"""
visitor_identity.auth.cookies

Tamper-evident cookies.

Responsibilities:
- Sign cookie values as HS256 JWS compact tokens (PyJWT) and verify them on read.
- Build `Set-Cookie` header values with the flags the refresh cookie needs.
- Collect outgoing cookies so callers can push them into any response header sink.

Format:
- `<header>.<payload>.<signature>`, each segment base64url. The payload is the raw
  cookie value; the protected header carries `{"cookie": <name>}` so a value signed
  for one cookie does not verify under another. Only URL-safe characters reach the
  browser, so no cookie quoting is involved.
"""

from __future__ import annotations

import http.cookies
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Literal, Protocol

from jwt import InvalidTokenError, api_jws

from visitor_identity.observability.logging import get_logger

log = get_logger(__name__)

_ALG = "HS256"

SameSite = Literal["strict", "lax", "none"]


class HeaderSink(Protocol):
    # Satisfied by `starlette.datastructures.MutableHeaders`.
    def append(self, key: str, value: str) -> None: ...


@dataclass(frozen=True, slots=True)
class Cookie:
    name: str
    value: str
    http_only: bool = False
    secure: bool = False
    same_site: SameSite | None = None
    max_age: int | None = None
    path: str = "/"

    def to_header(self) -> str:
        # Same rendering path Starlette's `Response.set_cookie` uses.
        jar: http.cookies.SimpleCookie = http.cookies.SimpleCookie()
        jar[self.name] = self.value
        morsel = jar[self.name]
        morsel["path"] = self.path
        if self.max_age is not None:
            morsel["max-age"] = str(self.max_age)
        if self.http_only:
            morsel["httponly"] = True
        if self.secure:
            morsel["secure"] = True
        if self.same_site is not None:
            morsel["samesite"] = self.same_site.capitalize()
        return jar.output(header="").strip()


class SignedCookieJar:
    """
    Immutable view of the request's cookies; `add` returns a new jar carrying the
    extra outgoing cookie.
    """

    def __init__(
        self,
        *,
        key: bytes,
        cookies: Mapping[str, str] | None = None,
        outgoing: tuple[Cookie, ...] = (),
    ) -> None:
        self._key = key
        self._cookies = dict(cookies or {})
        self._outgoing = outgoing

    def _sign(self, name: str, value: str) -> str:
        return api_jws.encode(
            value.encode("utf-8"),
            self._key,
            algorithm=_ALG,
            headers={"cookie": name},
        )

    def _verify(self, name: str, signed: str) -> str | None:
        try:
            token = api_jws.decode_complete(signed, self._key, algorithms=[_ALG])
            if token["header"].get("cookie") != name:
                return None
            return token["payload"].decode("utf-8")
        except (InvalidTokenError, UnicodeDecodeError):
            return None

    def get(self, name: str) -> str | None:
        raw = self._cookies.get(name)
        if raw is None:
            return None
        value = self._verify(name, raw)
        if value is None:
            log.info("cookie_rejected", cookie=name)
        return value

    def add(self, cookie: Cookie) -> SignedCookieJar:
        signed = replace(cookie, value=self._sign(cookie.name, cookie.value))
        cookies = {**self._cookies, cookie.name: signed.value}
        return SignedCookieJar(key=self._key, cookies=cookies, outgoing=(*self._outgoing, signed))

    def set_cookie_headers(self) -> list[str]:
        return [c.to_header() for c in self._outgoing]

    def write_to(self, headers: HeaderSink) -> None:
        for value in self.set_cookie_headers():
            headers.append("set-cookie", value)
