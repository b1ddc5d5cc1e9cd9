"""
tests.test_metadata

Responsibilities:
- Check proof-gated metadata writes and reads against the in-memory KVStore.
- Check every proof rejection path raises `AuthorizationError`.
"""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from visitor_identity.errors import AuthorizationError, DecodeError
from visitor_identity.identity.delegation import MAX_DELEGATION_CHAIN_LENGTH
from visitor_identity.identity.keys import BaseIdentity
from visitor_identity.identity.wire import DelegatedIdentityWire
from visitor_identity.kv.memory import InMemoryKVStore
from visitor_identity.services.metadata import (
    MetadataProof,
    get_user_metadata,
    metadata_key,
    set_user_metadata,
    sign_metadata_update,
)
from visitor_identity.services.resolver import generate_and_save_identity


@pytest.mark.asyncio
async def test_set_then_get(kv: InMemoryKVStore, now: datetime) -> None:
    base = await generate_and_save_identity(kv)
    p = base.principal()
    wire = DelegatedIdentityWire.delegate(base, now)

    proof = sign_metadata_update(wire, p, {"nsfw": True})
    await set_user_metadata(kv, p, {"nsfw": True}, proof=proof, now=now)

    assert await get_user_metadata(kv, p) == {"nsfw": True}
    assert await get_user_metadata(kv, BaseIdentity.generate().principal()) is None


@pytest.mark.asyncio
async def test_metadata_is_stored_apart_from_the_identity_key(
    kv: InMemoryKVStore, now: datetime
) -> None:
    base = await generate_and_save_identity(kv)
    p = base.principal()
    wire = DelegatedIdentityWire.delegate(base, now)
    await set_user_metadata(kv, p, {"a": 1}, proof=sign_metadata_update(wire, p, {"a": 1}), now=now)

    assert sorted(kv.keys()) == sorted([p.to_text(), p.to_text() + "-metadata"])
    assert metadata_key(p) == p.to_text() + "-metadata"
    assert BaseIdentity.from_jwk(await kv.read(p.to_text())).principal() == p


@pytest.mark.asyncio
async def test_overwrite(kv: InMemoryKVStore, now: datetime) -> None:
    base = BaseIdentity.generate()
    p = base.principal()
    wire = DelegatedIdentityWire.delegate(base, now)
    for doc in ({"nsfw": True}, {"nsfw": False, "lang": "en"}):
        await set_user_metadata(kv, p, doc, proof=sign_metadata_update(wire, p, doc), now=now)
    assert await get_user_metadata(kv, p) == {"nsfw": False, "lang": "en"}


@pytest.mark.asyncio
async def test_proof_for_another_principal_is_refused(kv: InMemoryKVStore, now: datetime) -> None:
    mine = BaseIdentity.generate()
    victim = BaseIdentity.generate().principal()
    wire = DelegatedIdentityWire.delegate(mine, now)
    proof = sign_metadata_update(wire, victim, {"nsfw": True})

    with pytest.raises(AuthorizationError):
        await set_user_metadata(kv, victim, {"nsfw": True}, proof=proof, now=now)
    assert kv.writes == 0


@pytest.mark.asyncio
async def test_signature_binds_the_metadata(kv: InMemoryKVStore, now: datetime) -> None:
    base = BaseIdentity.generate()
    p = base.principal()
    proof = sign_metadata_update(DelegatedIdentityWire.delegate(base, now), p, {"nsfw": True})

    with pytest.raises(AuthorizationError):
        await set_user_metadata(kv, p, {"nsfw": False}, proof=proof, now=now)


@pytest.mark.asyncio
async def test_expired_delegation_is_refused(kv: InMemoryKVStore, now: datetime) -> None:
    base = BaseIdentity.generate()
    p = base.principal()
    proof = sign_metadata_update(DelegatedIdentityWire.delegate(base, now), p, {"x": 1})

    with pytest.raises(AuthorizationError):
        await set_user_metadata(kv, p, {"x": 1}, proof=proof, now=now + timedelta(days=8))


@pytest.mark.asyncio
async def test_chain_from_a_different_base_key_is_refused(kv: InMemoryKVStore, now: datetime) -> None:
    base = BaseIdentity.generate()
    p = base.principal()
    honest = sign_metadata_update(DelegatedIdentityWire.delegate(base, now), p, {"x": 1})
    other_wire = DelegatedIdentityWire.delegate(BaseIdentity.generate(), now)
    spliced = MetadataProof(
        from_key=honest.from_key,
        delegation_chain=other_wire.delegation_chain,
        signature=sign_metadata_update(other_wire, p, {"x": 1}).signature,
    )

    with pytest.raises(AuthorizationError):
        await set_user_metadata(kv, p, {"x": 1}, proof=spliced, now=now)


@pytest.mark.asyncio
async def test_malformed_stored_metadata(kv: InMemoryKVStore) -> None:
    p = BaseIdentity.generate().principal()
    await kv.write(metadata_key(p), "{oops")
    with pytest.raises(DecodeError):
        await get_user_metadata(kv, p)


@pytest.mark.asyncio
async def test_over_long_proof_chain_is_refused(kv: InMemoryKVStore, now: datetime) -> None:
    base = BaseIdentity.generate()
    p = base.principal()
    honest = sign_metadata_update(DelegatedIdentityWire.delegate(base, now), p, {"x": 1})
    padded = honest.model_copy(
        update={"delegation_chain": honest.delegation_chain * (MAX_DELEGATION_CHAIN_LENGTH + 1)}
    )

    with pytest.raises(AuthorizationError, match="exceeds"):
        await set_user_metadata(kv, p, {"x": 1}, proof=padded, now=now)
    assert kv.writes == 0
