"""
visitor_identity.identity.principal

Self-authenticating principal identifiers.

Responsibilities:
- Derive a principal from a DER-encoded public key.
- Render and parse the checksummed textual form used as KV keys and token subjects.
"""

from __future__ import annotations

import base64
import hashlib
import zlib
from dataclasses import dataclass

_SELF_AUTHENTICATING_TAG = b"\x02"
_MAX_LEN = 29
_GROUP = 5


class InvalidPrincipalError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Opaque identifier; equality and hashing are over the raw bytes.
    """

    raw: bytes

    def __post_init__(self) -> None:
        if len(self.raw) > _MAX_LEN:
            raise InvalidPrincipalError(f"principal too long: {len(self.raw)} bytes")

    @classmethod
    def self_authenticating(cls, public_key_der: bytes) -> Principal:
        digest = hashlib.sha224(public_key_der).digest()
        return cls(digest + _SELF_AUTHENTICATING_TAG)

    @classmethod
    def from_text(cls, text: str) -> Principal:
        compact = text.replace("-", "").upper()
        padded = compact + "=" * (-len(compact) % 8)
        try:
            decoded = base64.b32decode(padded)
        except ValueError as e:
            raise InvalidPrincipalError(f"not base32: {text!r}") from e
        if len(decoded) < 4:
            raise InvalidPrincipalError(f"too short: {text!r}")

        checksum, raw = decoded[:4], decoded[4:]
        if zlib.crc32(raw).to_bytes(4, "big") != checksum:
            raise InvalidPrincipalError(f"checksum mismatch: {text!r}")

        principal = cls(raw)
        # Reject non-canonical spellings (case, grouping) so one principal has one key.
        if principal.to_text() != text:
            raise InvalidPrincipalError(f"not in canonical form: {text!r}")
        return principal

    def to_text(self) -> str:
        checksum = zlib.crc32(self.raw).to_bytes(4, "big")
        encoded = base64.b32encode(checksum + self.raw).decode("ascii").rstrip("=").lower()
        return "-".join(encoded[i : i + _GROUP] for i in range(0, len(encoded), _GROUP))

    def __str__(self) -> str:
        return self.to_text()
