# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

The admin profile store is created during application startup and closed on
shutdown. Tests replace it through ``app.dependency_overrides``.

Example:
    @router.delete("/users/{user_id}")
    async def delete(user_id: str, store: AdminStore):
        ...
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status

from stepcode.core.config import get_settings
from stepcode.infrastructure.supabase import SupabaseProfileStore

logger = logging.getLogger(__name__)

_admin_store: Optional[SupabaseProfileStore] = None


async def init_store() -> None:
    """Create the shared admin profile store."""
    global _admin_store
    _admin_store = SupabaseProfileStore(get_settings().supabase)


async def close_store() -> None:
    """Close the shared admin profile store."""
    global _admin_store
    if _admin_store is not None:
        await _admin_store.close()
        _admin_store = None


def get_admin_store() -> SupabaseProfileStore:
    """Get the admin profile store.

    Raises:
        HTTPException: If the store has not been initialized.
    """
    if _admin_store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Profile store not initialized",
        )
    return _admin_store


AdminStore = Annotated[SupabaseProfileStore, Depends(get_admin_store)]
