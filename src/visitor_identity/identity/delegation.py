"""
visitor_identity.identity.delegation

Delegations: time-boxed grants of signing authority from one key to another.

Responsibilities:
- Define `Delegation` / `SignedDelegation`.
- Compute the representation-independent hash that delegations are signed over.
- Verify a delegation chain rooted at a public key.
"""

from __future__ import annotations

import hashlib
from collections.abc import Sequence
from dataclasses import dataclass

from visitor_identity.errors import AuthorizationError
from visitor_identity.identity.keys import verify_signature
from visitor_identity.identity.principal import Principal

DELEGATION_DOMAIN_SEPARATOR = b"\x1aic-request-auth-delegation"

# Issued bundles carry a single link; anything past this is rejected unverified.
MAX_DELEGATION_CHAIN_LENGTH = 4


def _sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def _leb128(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _hash_fields(fields: dict[str, bytes]) -> bytes:
    # Each entry hashes as H(key) || H(value); entries are sorted so field order is irrelevant.
    pairs = sorted(_sha256(k.encode("utf-8")) + v for k, v in fields.items())
    return _sha256(b"".join(pairs))


@dataclass(frozen=True, slots=True)
class Delegation:
    pubkey: bytes
    # Absolute, nanoseconds since the Unix epoch.
    expiration: int
    # None means valid against any target.
    targets: tuple[Principal, ...] | None = None

    def representation_independent_hash(self) -> bytes:
        fields = {
            "pubkey": _sha256(self.pubkey),
            "expiration": _sha256(_leb128(self.expiration)),
        }
        if self.targets is not None:
            fields["targets"] = _sha256(b"".join(_sha256(t.raw) for t in self.targets))
        return _hash_fields(fields)

    def signing_message(self) -> bytes:
        return DELEGATION_DOMAIN_SEPARATOR + self.representation_independent_hash()


@dataclass(frozen=True, slots=True)
class SignedDelegation:
    delegation: Delegation
    signature: bytes

    def verify(self, signer_public_key_der: bytes) -> bool:
        return verify_signature(
            signer_public_key_der, self.delegation.signing_message(), self.signature
        )


def verify_chain(
    from_key: bytes,
    chain: Sequence[SignedDelegation],
    *,
    now_ns: int,
) -> bytes:
    """
    Walk the chain from `from_key` and return the public key it finally delegates to.

    Raises:
        AuthorizationError: empty or over-long chain, a bad signature, or an expired link.
    """

    if not chain:
        raise AuthorizationError("empty delegation chain")
    if len(chain) > MAX_DELEGATION_CHAIN_LENGTH:
        raise AuthorizationError(
            f"delegation chain of {len(chain)} exceeds {MAX_DELEGATION_CHAIN_LENGTH} links"
        )

    signer = from_key
    for index, link in enumerate(chain):
        if not link.verify(signer):
            raise AuthorizationError(f"delegation {index} has an invalid signature")
        if link.delegation.expiration <= now_ns:
            raise AuthorizationError(f"delegation {index} has expired")
        signer = link.delegation.pubkey
    return signer
