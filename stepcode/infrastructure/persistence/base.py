# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Profile store interface.

The hosted database/auth service is reached only through ProfileStore.
Every operation returns a StoreResult instead of raising, so callers decide
per call whether a backend failure matters (draft sync ignores it, lesson
completion reports it).
"""

from dataclasses import dataclass
from typing import Any, Generic, Optional, Protocol, TypeVar

from stepcode.domains.user.models import LearnerProfile

T = TypeVar("T")


@dataclass
class StoreResult(Generic[T]):
    """Outcome of a store operation.

    Attributes:
        data: Result payload; None on failure or when nothing was found.
        error: User-facing error message; None on success.
    """

    data: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        """Check whether the operation succeeded."""
        return self.error is None

    @classmethod
    def success(cls, data: Optional[T] = None) -> "StoreResult[T]":
        """Build a successful result."""
        return cls(data=data)

    @classmethod
    def failure(cls, error: str) -> "StoreResult[T]":
        """Build a failed result."""
        return cls(error=error)


@dataclass
class AuthSession:
    """An authenticated learner session.

    Attributes:
        user_id: Auth user id.
        email: Sign-in email.
        access_token: Bearer token for user-scoped requests.
        refresh_token: Token for refreshing the session.
    """

    user_id: str
    email: str
    access_token: str = ""
    refresh_token: str = ""


class ProfileStore(Protocol):
    """Persistence and authentication operations used by the core."""

    async def get_session(self) -> StoreResult[AuthSession]: ...

    async def sign_in(self, email: str, password: str) -> StoreResult[AuthSession]: ...

    async def sign_up(
        self, email: str, password: str, name: str
    ) -> StoreResult[AuthSession]: ...

    async def verify_code(self, email: str, code: str) -> StoreResult[AuthSession]: ...

    async def sign_out(self) -> StoreResult[None]: ...

    async def get_profile(self, user_id: str) -> StoreResult[LearnerProfile]: ...

    async def insert_profile(self, profile: LearnerProfile) -> StoreResult[LearnerProfile]: ...

    async def update_profile(
        self, user_id: str, fields: dict[str, Any]
    ) -> StoreResult[LearnerProfile]: ...

    async def delete_user(self, user_id: str) -> StoreResult[None]: ...
