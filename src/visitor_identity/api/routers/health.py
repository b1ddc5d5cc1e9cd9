"""
visitor_identity.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness probe (`/healthz`).
- Provide readiness probe (`/readyz`) with a KVStore round trip.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from visitor_identity.api.deps import kv_from_app
from visitor_identity.kv.store import KVStore

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(kv: KVStore = Depends(kv_from_app)) -> dict[str, str]:
    # A miss is fine; only a StorageError means the backend is unreachable.
    await kv.read("readyz-probe")
    return {"status": "ready"}
