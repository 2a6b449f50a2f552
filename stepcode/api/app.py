# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the application factory for the StepCode HTTP surface.

Run with:
    stepcode-api

or:
    uvicorn stepcode.api.app:create_app --factory --port 3000
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stepcode import __version__
from stepcode.api.dependencies import close_store, init_store
from stepcode.api.routes import admin, health
from stepcode.core.config import get_settings
from stepcode.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Configures logging and opens the admin profile store on startup, and
    closes the store on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info(
        "Starting StepCode API",
        extra={"environment": settings.environment, "debug": settings.debug},
    )

    await init_store()
    if not settings.supabase.has_service_role:
        logger.warning("SUPABASE_SERVICE_ROLE_KEY not set, admin deletion disabled")

    yield

    await close_store()
    logger.info("StepCode API stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="StepCode API",
        description="Health and administration endpoints for StepCode",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=["GET", "DELETE"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])

    return app


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "stepcode.api.app:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        log_config=None,
    )
