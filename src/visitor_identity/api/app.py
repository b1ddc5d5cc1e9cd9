"""
visitor_identity.api.app

FastAPI app factory for the visitor identity service.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Initialize and dispose shared infrastructure (KVStore, DB engine).
- Map identity failures to one opaque server error.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from visitor_identity import __version__
from visitor_identity.api.routers.health import router as health_router
from visitor_identity.api.routers.identity import router as identity_router
from visitor_identity.api.routers.metadata import router as metadata_router
from visitor_identity.db.init_db import init_db
from visitor_identity.db.session import create_engine, create_sessionmaker
from visitor_identity.errors import IdentityError
from visitor_identity.kv.memory import InMemoryKVStore
from visitor_identity.kv.sql import SqlKVStore
from visitor_identity.observability.logging import configure_logging, get_logger
from visitor_identity.observability.middleware import RequestContextMiddleware
from visitor_identity.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env, kv_backend=settings.kv_backend)
        engine = None
        if settings.kv_backend == "memory":
            app.state.kv = InMemoryKVStore()
        else:
            engine = create_engine(settings)
            if settings.env in ("dev", "test"):
                # Dev/test convenience: create tables automatically. Prod uses Alembic.
                await init_db(engine)
            app.state.kv = SqlKVStore(create_sessionmaker(engine))
        try:
            yield
        finally:
            if engine is not None:
                await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Visitor Identity",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(identity_router)
    app.include_router(metadata_router)

    @app.exception_handler(IdentityError)
    async def _identity_error(_: Request, exc: IdentityError) -> JSONResponse:
        # Storage, decode and signing failures all surface as one opaque error.
        log.error("identity_error", error_type=type(exc).__name__, error=str(exc))
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    return app


# --- Module Notes -----------------------------------------------------------
# App composition stays here; identity logic stays in `visitor_identity.services`.
