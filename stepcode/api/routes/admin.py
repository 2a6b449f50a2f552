# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Administration endpoints.

Deleting a user removes the auth account first and then the profile row.
Both steps need the Supabase service role key on the server.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from stepcode.api.dependencies import AdminStore

logger = logging.getLogger(__name__)

router = APIRouter()


class DeleteUserResponse(BaseModel):
    """Successful deletion response."""
    success: bool = True


class ErrorResponse(BaseModel):
    """Error response carrying the backend message."""
    error: str


@router.delete(
    "/delete-user/{user_id}",
    response_model=DeleteUserResponse,
    responses={500: {"model": ErrorResponse}},
)
async def delete_user(user_id: str, store: AdminStore):
    """Delete a learner's account and profile."""
    result = await store.delete_user(user_id)
    if not result.ok:
        logger.error("Delete user error: user_id=%s, error=%s", user_id, result.error)
        return JSONResponse(status_code=500, content={"error": result.error})
    return DeleteUserResponse()
