"""
HTTP entry point: ``uvicorn blocker_workflow.api:app``.
"""

from __future__ import annotations

import importlib.metadata
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .db.base import init_database
from .logging_config import configure_logging
from .workflow.routes import router as blocker_router
from .workflow.routes import status_router

logger = structlog.get_logger()

VERSION = importlib.metadata.version("blocker-workflow")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    settings = get_settings()
    logger.info("api_starting", app_name=settings.app_name, environment=settings.environment)
    # Create tables on first boot; a failure here should stop the server
    init_database()
    yield
    logger.info("api_stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application with both routers and the system endpoints."""
    settings = settings or get_settings()

    application = FastAPI(
        title=settings.app_name,
        description="Review, assignment, completion and verification of construction blockers",
        version=VERSION,
        lifespan=lifespan,
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(blocker_router)
    application.include_router(status_router)

    @application.get("/health", tags=["system"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @application.get("/version", tags=["system"])
    def version() -> dict[str, str]:
        return {"name": settings.app_name, "version": VERSION}

    return application


app = create_app()
