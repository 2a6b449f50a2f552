# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoint."""

import time
from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel, Field

from stepcode import __version__
from stepcode.core.config import get_settings
from stepcode.utils.datetime import utc_now

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(description="Overall health status")
    timestamp: datetime = Field(description="Current server timestamp")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")
    llm_configured: bool = Field(description="Whether the AI tutor has an API key")
    admin_enabled: bool = Field(description="Whether admin deletion is available")


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Report liveness and which optional services are configured."""
    settings = get_settings()
    return HealthResponse(
        status="healthy",
        timestamp=utc_now(),
        version=__version__,
        environment=settings.environment,
        uptime_seconds=int(time.time() - _server_start_time),
        llm_configured=settings.llm.is_configured,
        admin_enabled=settings.supabase.has_service_role,
    )
