"""FastAPI app entry point."""

from __future__ import annotations

import logging
import time

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine
from starlette.exceptions import HTTPException as StarletteHTTPException

from showtrackr.core.config import Settings, settings
from showtrackr.db.init_db import init_models
from showtrackr.db.session import create_engine, create_sessionmaker
from showtrackr.routers import shows, spa, users
from showtrackr.services.credential_store import EmailTakenError
from showtrackr.services.show_repository import ShowConflictError, ShowNotFoundError
from showtrackr.services.tvdb_client import ShowDatabaseError

logger = logging.getLogger(__name__)


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ShowNotFoundError)
    async def _not_found(request: Request, exc: ShowNotFoundError) -> JSONResponse:
        return _message(404, str(exc))

    @app.exception_handler(ShowConflictError)
    async def _show_conflict(request: Request, exc: ShowConflictError) -> JSONResponse:
        return _message(409, str(exc))

    @app.exception_handler(EmailTakenError)
    async def _email_conflict(request: Request, exc: EmailTakenError) -> JSONResponse:
        return _message(409, str(exc))

    @app.exception_handler(ShowDatabaseError)
    async def _show_database(request: Request, exc: ShowDatabaseError) -> JSONResponse:
        logger.exception("Show database failure", exc_info=exc)
        return _message(500, str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _message(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return _message(500, "Internal server error")


def create_app(
    app_settings: Settings | None = None,
    *,
    engine: AsyncEngine | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Build FastAPI application.

    The engine and HTTP client live for the whole process and are shared by
    every request through ``app.state``. Tests pass their own.
    """

    config = app_settings or settings
    logging.basicConfig(level=config.log_level)

    app = FastAPI(title="ShowTrackr", version="0.1.0")
    app.state.engine = engine or create_engine(config.database_url)
    app.state.sessionmaker = create_sessionmaker(app.state.engine)
    app.state.http_client = http_client or httpx.AsyncClient()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def _log_request(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, elapsed_ms)
        return response

    _register_error_handlers(app)

    @app.get("/healthz", tags=["health"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    # Order matters: the client catch-all must come after every API route.
    app.include_router(shows.router)
    app.include_router(users.router)
    app.include_router(spa.router)

    @app.on_event("startup")
    async def _startup() -> None:
        if config.create_tables:
            await init_models(app.state.engine)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await app.state.http_client.aclose()
        await app.state.engine.dispose()

    return app


app = create_app()
