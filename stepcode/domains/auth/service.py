# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication and profile bootstrap service.

Validates sign-in, sign-up and email verification input before anything is
sent to the profile store, and loads (or creates) the learner profile once a
session exists. Validation failures raise AuthValidationError with a message
meant for the learner; store failures raise AuthFailedError.

Example:
    >>> auth = AuthService(store)
    >>> outcome = await auth.sign_up("a@b.co", "secret1", "secret1", "Jini")
    >>> if outcome.needs_verification:
    ...     profile = await auth.verify_code("a@b.co", "1a2b3c4d")
"""

import logging
from dataclasses import dataclass
from typing import Any, Literal, Optional

from stepcode.domains.user.models import LearnerProfile
from stepcode.infrastructure.persistence.base import AuthSession, ProfileStore
from stepcode.utils.datetime import utc_now

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
VERIFICATION_CODE_LENGTH = 8
DEFAULT_LEARNER_NAME = "Learner"


class AuthServiceError(Exception):
    """Base exception for authentication service errors."""

    pass


class AuthValidationError(AuthServiceError):
    """Raised when learner input is rejected before contacting the store."""

    pass


class AuthFailedError(AuthServiceError):
    """Raised when the store rejects an authentication request."""

    pass


class AccountBannedError(AuthServiceError):
    """Raised when a suspended account signs in."""

    pass


@dataclass
class SignUpOutcome:
    """Result of a sign-up.

    Attributes:
        profile: The learner profile, when the account is usable right away.
        needs_verification: Whether an emailed code must be verified first.
    """

    profile: Optional[LearnerProfile] = None
    needs_verification: bool = False


class AuthService:
    """Sign-in, sign-up, verification and profile settings."""

    def __init__(self, store: ProfileStore) -> None:
        self._store = store

    async def sign_in(self, email: str, password: str) -> LearnerProfile:
        """Sign in with email and password and load the learner profile.

        Raises:
            AuthValidationError: If a field is empty.
            AuthFailedError: If the credentials are rejected.
            AccountBannedError: If the account is suspended.
        """
        email = email.strip()
        if not email or not password:
            raise AuthValidationError("Enter your email and password.")

        result = await self._store.sign_in(email, password)
        if not result.ok or result.data is None:
            if result.error and "Invalid login credentials" in result.error:
                raise AuthFailedError("Incorrect email or password.")
            raise AuthFailedError(result.error or "Sign-in failed.")
        return await self.load_profile(result.data)

    async def sign_up(
        self,
        email: str,
        password: str,
        confirm_password: str,
        name: str,
    ) -> SignUpOutcome:
        """Register a new account.

        Raises:
            AuthValidationError: If a field is missing, the passwords differ,
                or the password is too short.
            AuthFailedError: If the store rejects the sign-up.
        """
        email = email.strip()
        name = name.strip()
        if not email or not password or not name:
            raise AuthValidationError("Fill in every field.")
        if password != confirm_password:
            raise AuthValidationError("The passwords do not match.")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthValidationError(
                f"The password must be at least {MIN_PASSWORD_LENGTH} characters."
            )

        result = await self._store.sign_up(email, password, name)
        if not result.ok or result.data is None:
            raise AuthFailedError(result.error or "Sign-up failed.")

        session = result.data
        if not session.access_token:
            logger.info("Sign-up awaiting email verification: email=%s", email)
            return SignUpOutcome(needs_verification=True)
        return SignUpOutcome(profile=await self.load_profile(session, name=name))

    async def verify_code(
        self, email: str, code: str, name: Optional[str] = None
    ) -> LearnerProfile:
        """Confirm an email with the emailed code and load the profile.

        Raises:
            AuthValidationError: If the code is shorter than 8 characters.
            AuthFailedError: If the code is wrong or expired.
        """
        code = code.strip()
        if len(code) < VERIFICATION_CODE_LENGTH:
            raise AuthValidationError(
                f"Enter the {VERIFICATION_CODE_LENGTH}-character verification code."
            )

        result = await self._store.verify_code(email.strip(), code)
        if not result.ok or result.data is None:
            raise AuthFailedError(result.error or "The code is invalid or has expired.")
        return await self.load_profile(result.data, name=name)

    async def restore(self) -> Optional[LearnerProfile]:
        """Load the profile of a still-valid stored session, if any."""
        result = await self._store.get_session()
        if not result.ok or result.data is None:
            return None
        return await self.load_profile(result.data)

    async def sign_out(self) -> None:
        """End the session. Store failures are logged only."""
        result = await self._store.sign_out()
        if not result.ok:
            logger.warning("Sign-out failed: %s", result.error)

    async def load_profile(
        self, session: AuthSession, name: Optional[str] = None
    ) -> LearnerProfile:
        """Load the learner profile, creating it on first sign-in.

        Raises:
            AuthFailedError: If the profile cannot be loaded or created.
            AccountBannedError: If the account is suspended.
        """
        result = await self._store.get_profile(session.user_id)
        if not result.ok:
            raise AuthFailedError(result.error or "Could not load your profile.")

        profile = result.data
        if profile is None:
            created = await self._store.insert_profile(
                LearnerProfile(
                    id=session.user_id,
                    name=name or DEFAULT_LEARNER_NAME,
                    email=session.email,
                    updated_at=utc_now(),
                )
            )
            if not created.ok or created.data is None:
                raise AuthFailedError(created.error or "Could not create your profile.")
            profile = created.data
            logger.info("Profile created: user_id=%s", session.user_id)

        if not profile.email:
            profile.email = session.email
        if profile.is_banned:
            raise AccountBannedError("This account has been suspended.")
        return profile

    async def update_settings(
        self,
        profile: LearnerProfile,
        name: Optional[str] = None,
        theme: Optional[Literal["light", "dark"]] = None,
        preferences: Optional[dict[str, Any]] = None,
    ) -> Optional[str]:
        """Update the learner's name, theme and preferences.

        The local profile is updated even if saving fails.

        Returns:
            The store error, or None when saved.

        Raises:
            AuthValidationError: If the name is blank.
        """
        if name is not None:
            name = name.strip()
            if not name:
                raise AuthValidationError("The name cannot be empty.")
            profile.name = name
        if theme is not None:
            profile.theme = theme
        if preferences:
            profile.settings = {**profile.settings, **preferences}
        profile.updated_at = utc_now()

        result = await self._store.update_profile(
            profile.id,
            profile.fields_for_update("name", "theme", "settings", "updated_at"),
        )
        if not result.ok:
            logger.warning("Settings not saved: user_id=%s, error=%s", profile.id, result.error)
        return result.error
