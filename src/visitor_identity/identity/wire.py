"""
visitor_identity.identity.wire

Wire bundle handed to clients: a delegated identity they can sign with.

Responsibilities:
- Mint a session identity and delegate to it from a base identity.
- Serialize the bundle as JSON (byte fields as integer arrays).
- Rebuild domain objects (session signer, delegation chain) from a received bundle.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer

from visitor_identity.clock import epoch_ns
from visitor_identity.consts import DELEGATION_EXPIRY
from visitor_identity.errors import SigningError
from visitor_identity.identity.delegation import Delegation, SignedDelegation
from visitor_identity.identity.keys import AnyIdentity, SessionIdentity
from visitor_identity.identity.principal import Principal


def _bytes_from_wire(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, list) and all(isinstance(b, int) and 0 <= b <= 255 for b in value):
        return bytes(value)
    raise ValueError("expected an array of byte values")


WireBytes = Annotated[
    bytes,
    BeforeValidator(_bytes_from_wire),
    PlainSerializer(list, return_type=list[int]),
]


class DelegationWire(BaseModel):
    model_config = ConfigDict(frozen=True)

    pubkey: WireBytes
    expiration: int = Field(ge=0)
    targets: list[str] | None = None

    def to_domain(self) -> Delegation:
        targets = None
        if self.targets is not None:
            targets = tuple(Principal.from_text(t) for t in self.targets)
        return Delegation(pubkey=self.pubkey, expiration=self.expiration, targets=targets)


class SignedDelegationWire(BaseModel):
    model_config = ConfigDict(frozen=True)

    delegation: DelegationWire
    signature: WireBytes

    @classmethod
    def from_domain(cls, signed: SignedDelegation) -> SignedDelegationWire:
        d = signed.delegation
        targets = None if d.targets is None else [t.to_text() for t in d.targets]
        return cls(
            delegation=DelegationWire(pubkey=d.pubkey, expiration=d.expiration, targets=targets),
            signature=signed.signature,
        )

    def to_domain(self) -> SignedDelegation:
        return SignedDelegation(delegation=self.delegation.to_domain(), signature=self.signature)


class DelegatedIdentityWire(BaseModel):
    """
    `to_secret` is always the session key; the base key never leaves the server.
    """

    model_config = ConfigDict(frozen=True)

    from_key: WireBytes
    to_secret: dict[str, Any]
    delegation_chain: list[SignedDelegationWire]

    @classmethod
    def delegate(
        cls,
        base: AnyIdentity,
        now: datetime,
        *,
        expiry: timedelta = DELEGATION_EXPIRY,
    ) -> DelegatedIdentityWire:
        session = SessionIdentity.generate()
        delegation = Delegation(
            pubkey=session.public_key_der(),
            expiration=epoch_ns(now + expiry),
            targets=None,
        )
        if delegation.expiration <= epoch_ns(now):
            raise SigningError("delegation expiration must be in the future")

        signed = SignedDelegation(delegation=delegation, signature=base.sign_delegation(delegation))
        return cls(
            from_key=base.public_key_der(),
            to_secret=session.to_jwk_dict(),
            delegation_chain=[SignedDelegationWire.from_domain(signed)],
        )

    def principal(self) -> Principal:
        return Principal.self_authenticating(self.from_key)

    def session_identity(self) -> SessionIdentity:
        return SessionIdentity.from_jwk(self.to_secret)

    def chain(self) -> list[SignedDelegation]:
        return [link.to_domain() for link in self.delegation_chain]
