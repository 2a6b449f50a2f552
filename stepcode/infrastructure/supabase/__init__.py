# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Supabase profile store over httpx."""

from stepcode.infrastructure.supabase.store import (
    SERVICE_ROLE_REQUIRED_MESSAGE,
    SupabaseProfileStore,
)

__all__ = [
    "SERVICE_ROLE_REQUIRED_MESSAGE",
    "SupabaseProfileStore",
]
