"""
HTTP surface for core-api.

A FastAPI application with a single unauthenticated root route. The shared
MySQL pool is opened in the application lifespan and kept on `app.state`
for handlers that build repositories; `RestException`s raised anywhere below
a handler are rendered with their own status code.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from core_api.config import Settings, get_settings
from core_api.exceptions import RestException
from core_api.infrastructure.db_factory import close_pool, get_pool
from core_api.utils.logging import get_logger

log = get_logger(__name__)

UNAUTHENTICATED_NAMESPACES = ("auth", "status")
GREETING = "Hello from server"

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return GREETING


async def rest_exception_handler(request: Request, exc: RestException) -> JSONResponse:
    log.warning(
        "Request failed",
        extra={"path": request.url.path, "status_code": exc.status_code},
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app(settings: Optional[Settings] = None, pool: Optional[Any] = None) -> FastAPI:
    """
    Build the application.

    Parameters
    ----------
    settings : Settings, optional
        Defaults to the cached application settings.
    pool : optional
        An already open pool; when omitted the shared pool is created on
        startup and closed on shutdown.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("Setting up router", extra={"port": settings.port, "env": settings.app_env})
        app.state.db_conn = pool if pool is not None else await get_pool(settings)
        try:
            yield
        finally:
            if pool is None:
                await close_pool()

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    app.state.settings = settings
    app.state.unauthenticated_namespaces = UNAUTHENTICATED_NAMESPACES
    app.add_exception_handler(RestException, rest_exception_handler)
    app.include_router(router)
    return app


__all__ = ["UNAUTHENTICATED_NAMESPACES", "create_app", "router"]
