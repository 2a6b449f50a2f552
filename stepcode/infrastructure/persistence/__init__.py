# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Profile store interface and the in-memory implementation."""

from stepcode.infrastructure.persistence.base import AuthSession, ProfileStore, StoreResult
from stepcode.infrastructure.persistence.memory import InMemoryProfileStore

__all__ = [
    "AuthSession",
    "InMemoryProfileStore",
    "ProfileStore",
    "StoreResult",
]
