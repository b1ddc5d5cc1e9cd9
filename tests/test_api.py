"""
tests.test_api

End-to-end tests through the FastAPI app with the in-memory KVStore.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from visitor_identity.api.app import create_app
from visitor_identity.identity.principal import Principal
from visitor_identity.identity.wire import DelegatedIdentityWire
from visitor_identity.services.metadata import sign_metadata_update
from visitor_identity.settings import Settings

from .conftest import cookie_value


@pytest_asyncio.fixture
async def app() -> AsyncIterator[FastAPI]:
    app = create_app(settings=Settings(env="test", kv_backend="memory"))
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="https://test") as client:
        yield client


async def _issue(client: httpx.AsyncClient, cookie: str | None = None) -> httpx.Response:
    client.cookies.clear()
    headers = {"cookie": f"user-identity={cookie}"} if cookie else {}
    return await client.post("/v1/identity", headers=headers)


@pytest.mark.asyncio
async def test_first_visit_then_return_visit(app: FastAPI, client: httpx.AsyncClient) -> None:
    r = await _issue(client)
    assert r.status_code == 200
    first = DelegatedIdentityWire.model_validate(r.json())
    set_cookie = r.headers["set-cookie"]
    assert set_cookie.startswith("user-identity=")
    assert "HttpOnly" in set_cookie and "Secure" in set_cookie and "SameSite=None" in set_cookie

    kv = app.state.kv
    assert kv.keys() == [first.principal().to_text()]

    r = await _issue(client, cookie_value(set_cookie))
    assert r.status_code == 200
    second = DelegatedIdentityWire.model_validate(r.json())
    assert Principal.self_authenticating(bytes(r.json()["from_key"])) == first.principal()
    assert second.to_secret != first.to_secret
    assert kv.writes == 1


@pytest.mark.asyncio
async def test_tampered_cookie_gets_a_new_identity(app: FastAPI, client: httpx.AsyncClient) -> None:
    r = await _issue(client)
    first = DelegatedIdentityWire.model_validate(r.json())

    signed_header, payload, _ = cookie_value(r.headers["set-cookie"]).split(".")
    r = await _issue(client, f"{signed_header}.{payload}.AAAA")
    second = DelegatedIdentityWire.model_validate(r.json())
    assert second.principal() != first.principal()
    assert app.state.kv.writes == 2


@pytest.mark.asyncio
async def test_corrupt_stored_key_is_an_opaque_server_error(
    app: FastAPI, client: httpx.AsyncClient
) -> None:
    r = await _issue(client)
    wire = DelegatedIdentityWire.model_validate(r.json())
    await app.state.kv.write(wire.principal().to_text(), "garbage")

    r = await _issue(client, cookie_value(r.headers["set-cookie"]))
    assert r.status_code == 500
    assert r.json() == {"detail": "Internal server error"}


@pytest.mark.asyncio
async def test_metadata_endpoints(client: httpx.AsyncClient) -> None:
    r = await _issue(client)
    wire = DelegatedIdentityWire.model_validate(r.json())
    p = wire.principal()

    r = await client.get(f"/v1/metadata/{p.to_text()}")
    assert r.status_code == 404

    proof = sign_metadata_update(wire, p, {"nsfw": True})
    r = await client.put(
        f"/v1/metadata/{p.to_text()}",
        json={"metadata": {"nsfw": True}, "proof": proof.model_dump(mode="json")},
    )
    assert r.status_code == 200

    r = await client.get(f"/v1/metadata/{p.to_text()}")
    assert r.status_code == 200
    assert r.json() == {"principal": p.to_text(), "metadata": {"nsfw": True}}


@pytest.mark.asyncio
async def test_metadata_write_for_someone_else_is_forbidden(client: httpx.AsyncClient) -> None:
    mine = DelegatedIdentityWire.model_validate((await _issue(client)).json())
    theirs = DelegatedIdentityWire.model_validate((await _issue(client)).json()).principal()

    proof = sign_metadata_update(mine, theirs, {"nsfw": True})
    r = await client.put(
        f"/v1/metadata/{theirs.to_text()}",
        json={"metadata": {"nsfw": True}, "proof": proof.model_dump(mode="json")},
    )
    assert r.status_code == 403

    r = await client.get(f"/v1/metadata/{theirs.to_text()}")
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_invalid_principal_path(client: httpx.AsyncClient) -> None:
    r = await client.get("/v1/metadata/not-a-principal")
    assert r.status_code == 422
