"""
FastAPI application factory.

This module builds the dumpview HTTP API:
1.  **Middleware Setup**: CORS so browser pages on other origins can fetch dumps.
2.  **Exception Handling**: Global handlers so every error returns structured JSON.
3.  **Routing**: `/dump`, `/sessions` and `/health`.
4.  **Lifecycle**: The session store is created at startup.

`create_app` is a factory so tests can spin up fresh instances.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dumpview import __version__
from dumpview.api.routers import dump, sessions
from dumpview.api.session_store import SessionStore
from dumpview.core.errors import UnknownIdentityError, UnsupportedValueError
from dumpview.core.settings import get_logger, load_settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize the session store singleton before serving requests."""
    logger.info("Starting up (env=%s)", load_settings().environment)
    SessionStore.get_instance()
    yield
    logger.info("Shutting down")


def create_app() -> FastAPI:
    """
    Construct and configure the dumpview FastAPI application.

    Returns
    -------
    FastAPI
        The configured ASGI application ready to be served by Uvicorn.
    """
    app = FastAPI(
        title="dumpview API",
        description="Bounded value dumps as lazily expandable HTML trees",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler: unhandled exceptions become structured 500s."""
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "detail": str(exc),
                "path": request.url.path,
            },
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        """Map ValueErrors (including options validation) to HTTP 400."""
        return JSONResponse(
            status_code=400,
            content={"error": "Bad Request", "detail": str(exc)},
        )

    @app.exception_handler(UnsupportedValueError)
    async def unsupported_handler(request: Request, exc: UnsupportedValueError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"error": "Unsupported Value", "detail": str(exc), "kind": exc.kind},
        )

    @app.exception_handler(UnknownIdentityError)
    async def unknown_identity_handler(
        request: Request, exc: UnknownIdentityError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={"error": "Unknown Identity", "detail": str(exc)},
        )

    app.include_router(dump.router)
    app.include_router(sessions.router)

    @app.get("/health", tags=["System"])
    async def health_check() -> dict[str, str]:
        """Liveness probe."""
        return {
            "status": "ok",
            "environment": load_settings().environment,
            "version": __version__,
        }

    return app


__all__ = ["create_app"]
