"""
visitor_identity.services.metadata

Per-principal JSON metadata.

Responsibilities:
- Read metadata for any principal.
- Write metadata only when the caller proves control of the principal: the
  proof carries the delegation chain from the principal's base key and a
  session-key signature over the exact metadata being written.

Notes:
- Metadata lives under `<principal text>-metadata`, apart from the identity secret
  stored under the bare principal text.
"""

from __future__ import annotations

import json
from datetime import datetime

from pydantic import BaseModel

from visitor_identity.clock import epoch_ns
from visitor_identity.consts import METADATA_KEY_SUFFIX
from visitor_identity.errors import AuthorizationError, EncodeError
from visitor_identity.identity.delegation import verify_chain
from visitor_identity.identity.keys import verify_signature
from visitor_identity.identity.principal import Principal
from visitor_identity.identity.wire import DelegatedIdentityWire, SignedDelegationWire, WireBytes
from visitor_identity.kv.store import KVStore, UserMetadata
from visitor_identity.observability.logging import get_logger

log = get_logger(__name__)

METADATA_DOMAIN_SEPARATOR = b"\x0duser-metadata"


class MetadataProof(BaseModel):
    from_key: WireBytes
    delegation_chain: list[SignedDelegationWire]
    signature: WireBytes


def metadata_key(principal: Principal) -> str:
    return principal.to_text() + METADATA_KEY_SUFFIX


def metadata_signing_message(principal: Principal, metadata: UserMetadata) -> bytes:
    try:
        canonical = json.dumps(metadata, sort_keys=True, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise EncodeError("metadata is not JSON-serializable") from e
    return METADATA_DOMAIN_SEPARATOR + principal.raw + canonical.encode("utf-8")


def sign_metadata_update(
    wire: DelegatedIdentityWire,
    principal: Principal,
    metadata: UserMetadata,
) -> MetadataProof:
    """
    Client-side helper: sign a metadata write with the bundle's session key.
    """

    session = wire.session_identity()
    return MetadataProof(
        from_key=wire.from_key,
        delegation_chain=wire.delegation_chain,
        signature=session.sign(metadata_signing_message(principal, metadata)),
    )


def verify_metadata_proof(
    principal: Principal,
    metadata: UserMetadata,
    proof: MetadataProof,
    now: datetime,
) -> None:
    if Principal.self_authenticating(proof.from_key) != principal:
        raise AuthorizationError("proof is rooted at a different principal")
    try:
        chain = [link.to_domain() for link in proof.delegation_chain]
    except ValueError as e:
        raise AuthorizationError("malformed delegation chain") from e

    session_key = verify_chain(proof.from_key, chain, now_ns=epoch_ns(now))
    message = metadata_signing_message(principal, metadata)
    if not verify_signature(session_key, message, proof.signature):
        raise AuthorizationError("metadata signature does not verify")


async def set_user_metadata(
    kv: KVStore,
    principal: Principal,
    metadata: UserMetadata,
    *,
    proof: MetadataProof,
    now: datetime,
) -> None:
    verify_metadata_proof(principal, metadata, proof, now)
    await kv.write_json_metadata(metadata_key(principal), metadata)
    log.info("metadata_written", principal=principal.to_text())


async def get_user_metadata(kv: KVStore, principal: Principal) -> UserMetadata | None:
    return await kv.read_json_metadata(metadata_key(principal))
