# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-memory profile store for local use and tests.

Behaves like the hosted store: sign-ups must be confirmed with an 8-character
code before signing in, updates are partial upserts restricted to the
updatable profile fields, and failures come back as StoreResult errors.
Setting ``fail_with`` makes every following call fail with that message.
"""

import logging
import secrets
import uuid
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import ValidationError

from stepcode.domains.user.models import PROFILE_UPDATE_FIELDS, LearnerProfile
from stepcode.infrastructure.persistence.base import AuthSession, StoreResult
from stepcode.utils.datetime import utc_now

logger = logging.getLogger(__name__)


@dataclass
class _Account:
    user_id: str
    email: str
    password: str
    name: str
    confirmed: bool = False


class InMemoryProfileStore:
    """ProfileStore kept in process memory.

    Attributes:
        fail_with: When set, every call fails with this error message.
        pending_codes: Verification code per unconfirmed email.
        updates: Every successful update_profile call, in order.
    """

    def __init__(self) -> None:
        self._accounts: dict[str, _Account] = {}
        self._profiles: dict[str, LearnerProfile] = {}
        self._session: Optional[AuthSession] = None
        self.fail_with: Optional[str] = None
        self.pending_codes: dict[str, str] = {}
        self.updates: list[tuple[str, dict[str, Any]]] = []

    def add_profile(self, profile: LearnerProfile, password: str = "password") -> None:
        """Seed a confirmed account with its profile."""
        self._accounts[profile.email] = _Account(
            user_id=profile.id,
            email=profile.email,
            password=password,
            name=profile.name,
            confirmed=True,
        )
        self._profiles[profile.id] = profile.model_copy(deep=True)

    async def get_session(self) -> StoreResult[AuthSession]:
        if self.fail_with:
            return StoreResult.failure(self.fail_with)
        return StoreResult.success(self._session)

    async def sign_in(self, email: str, password: str) -> StoreResult[AuthSession]:
        if self.fail_with:
            return StoreResult.failure(self.fail_with)
        account = self._accounts.get(email)
        if account is None or account.password != password:
            return StoreResult.failure("Invalid login credentials")
        if not account.confirmed:
            return StoreResult.failure("Email not confirmed")
        self._session = self._open_session(account)
        return StoreResult.success(self._session)

    async def sign_up(self, email: str, password: str, name: str) -> StoreResult[AuthSession]:
        if self.fail_with:
            return StoreResult.failure(self.fail_with)
        if email in self._accounts:
            return StoreResult.failure("User already registered")
        account = _Account(user_id=str(uuid.uuid4()), email=email, password=password, name=name)
        self._accounts[email] = account
        self.pending_codes[email] = secrets.token_hex(4)
        logger.info("Sign-up pending confirmation: email=%s", email)
        return StoreResult.success(AuthSession(user_id=account.user_id, email=email))

    async def verify_code(self, email: str, code: str) -> StoreResult[AuthSession]:
        if self.fail_with:
            return StoreResult.failure(self.fail_with)
        account = self._accounts.get(email)
        if account is None or self.pending_codes.get(email) != code:
            return StoreResult.failure("Token has expired or is invalid")
        del self.pending_codes[email]
        account.confirmed = True
        self._session = self._open_session(account)
        return StoreResult.success(self._session)

    async def sign_out(self) -> StoreResult[None]:
        if self.fail_with:
            return StoreResult.failure(self.fail_with)
        self._session = None
        return StoreResult.success()

    async def get_profile(self, user_id: str) -> StoreResult[LearnerProfile]:
        if self.fail_with:
            return StoreResult.failure(self.fail_with)
        profile = self._profiles.get(user_id)
        return StoreResult.success(profile.model_copy(deep=True) if profile else None)

    async def insert_profile(self, profile: LearnerProfile) -> StoreResult[LearnerProfile]:
        if self.fail_with:
            return StoreResult.failure(self.fail_with)
        if profile.id in self._profiles:
            return StoreResult.failure("Profile already exists")
        self._profiles[profile.id] = profile.model_copy(deep=True)
        return StoreResult.success(profile.model_copy(deep=True))

    async def update_profile(
        self, user_id: str, fields: dict[str, Any]
    ) -> StoreResult[LearnerProfile]:
        if self.fail_with:
            return StoreResult.failure(self.fail_with)
        unknown = set(fields) - PROFILE_UPDATE_FIELDS
        if unknown:
            return StoreResult.failure(
                f"Not updatable profile fields: {', '.join(sorted(unknown))}"
            )

        current = self._profiles.get(user_id)
        base = current.model_dump(mode="json") if current else {"id": user_id}
        try:
            updated = LearnerProfile.model_validate({**base, **fields})
        except ValidationError as e:
            return StoreResult.failure(f"Invalid profile update: {e}")

        self._profiles[user_id] = updated
        self.updates.append((user_id, dict(fields)))
        return StoreResult.success(updated.model_copy(deep=True))

    async def delete_user(self, user_id: str) -> StoreResult[None]:
        if self.fail_with:
            return StoreResult.failure(self.fail_with)
        self._accounts = {
            email: account
            for email, account in self._accounts.items()
            if account.user_id != user_id
        }
        self._profiles.pop(user_id, None)
        if self._session is not None and self._session.user_id == user_id:
            self._session = None
        return StoreResult.success()

    def _open_session(self, account: _Account) -> AuthSession:
        return AuthSession(
            user_id=account.user_id,
            email=account.email,
            access_token=f"memory-{account.user_id}-{utc_now().timestamp():.0f}",
        )
