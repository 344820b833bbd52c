"""Main entry point for the chatflow engine server."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import Settings, settings as default_settings
from .core.logging import configure_logging
from .core.runtime import Runtime, build_runtime
from .routes import api_router
from .schemas.common import HealthResponse, RootResponse

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, runtime: Runtime | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    A prebuilt `runtime` (e.g. with fake collaborators) replaces the one the
    lifespan would otherwise build from `settings`.
    """
    settings = settings or default_settings
    started_at = time.monotonic()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler."""
        configure_logging(settings.log_level)
        if getattr(app.state, "runtime", None) is None:
            app.state.runtime = build_runtime(settings)
        await app.state.runtime.startup()
        logger.info("%s v%s started", settings.app_name, settings.app_version)
        logger.info("Running on http://%s:%s", settings.host, settings.port)

        yield

        await app.state.runtime.shutdown()
        logger.info("%s stopped", settings.app_name)

    app = FastAPI(
        title=settings.app_name,
        description="Conversational workflow engine - durable chat automations over a messaging channel",
        version=settings.app_version,
        lifespan=lifespan,
        debug=settings.debug,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    app.include_router(api_router)

    if runtime is not None:
        app.state.runtime = runtime

    # Root endpoints
    @app.get("/", response_model=RootResponse)
    async def root() -> RootResponse:
        """Root endpoint."""
        return RootResponse(
            name=settings.app_name,
            version=settings.app_version,
            status="running",
        )

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            version=settings.app_version,
            uptime_seconds=round(time.monotonic() - started_at, 3),
        )

    return app


# Create app instance
app = create_app()


def main() -> None:
    """Run the server."""
    uvicorn.run(
        "chatflow.main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.reload,
        log_level=default_settings.log_level,
    )


if __name__ == "__main__":
    main()
