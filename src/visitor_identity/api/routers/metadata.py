"""
visitor_identity.api.routers.metadata

Per-principal metadata endpoints.

Responsibilities:
- Return stored metadata for a principal (404 when none exists).
- Accept metadata writes that carry a valid delegation proof (403 otherwise).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from starlette.status import HTTP_403_FORBIDDEN, HTTP_404_NOT_FOUND

from visitor_identity.api.deps import kv_from_app, now_dep, principal_path
from visitor_identity.errors import AuthorizationError
from visitor_identity.identity.principal import Principal
from visitor_identity.kv.store import KVStore
from visitor_identity.services.metadata import (
    MetadataProof,
    get_user_metadata,
    set_user_metadata,
)

router = APIRouter(prefix="/v1/metadata", tags=["metadata"])


class MetadataResponse(BaseModel):
    principal: str
    metadata: dict[str, Any]


class MetadataUpdateRequest(BaseModel):
    metadata: dict[str, Any] = Field(default_factory=dict)
    proof: MetadataProof


@router.get("/{principal}", response_model=MetadataResponse)
async def read_metadata(
    principal: Principal = Depends(principal_path),
    kv: KVStore = Depends(kv_from_app),
) -> MetadataResponse:
    metadata = await get_user_metadata(kv, principal)
    if metadata is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Metadata not found")
    return MetadataResponse(principal=principal.to_text(), metadata=metadata)


@router.put("/{principal}", response_model=MetadataResponse)
async def write_metadata(
    body: MetadataUpdateRequest,
    principal: Principal = Depends(principal_path),
    kv: KVStore = Depends(kv_from_app),
    now: datetime = Depends(now_dep),
) -> MetadataResponse:
    try:
        await set_user_metadata(kv, principal, body.metadata, proof=body.proof, now=now)
    except AuthorizationError as e:
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail=str(e)) from e
    return MetadataResponse(principal=principal.to_text(), metadata=body.metadata)
