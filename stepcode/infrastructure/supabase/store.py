# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Supabase-backed profile store.

Talks to the Supabase auth API (``/auth/v1``) and the PostgREST API
(``/rest/v1``) over httpx. Profiles live in the ``profiles`` table keyed by
the auth user id. Backend failures are returned as StoreResult errors,
carrying the message the service sent.

Example:
    >>> store = SupabaseProfileStore()
    >>> session = await store.sign_in("learner@example.com", "secret1")
    >>> if session.ok:
    ...     profile = await store.get_profile(session.data.user_id)
    >>> await store.close()
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from stepcode.core.config.settings import SupabaseSettings, get_settings
from stepcode.domains.user.models import PROFILE_UPDATE_FIELDS, LearnerProfile
from stepcode.infrastructure.persistence.base import AuthSession, StoreResult

logger = logging.getLogger(__name__)

PROFILES_TABLE = "profiles"
SERVICE_ROLE_REQUIRED_MESSAGE = (
    "SUPABASE_SERVICE_ROLE_KEY is not configured on the server. "
    "Contact an administrator."
)


def _error_message(response: httpx.Response) -> str:
    """Pull the human-readable message out of a Supabase error response."""
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        for key in ("msg", "message", "error_description", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return f"HTTP {response.status_code}"


class SupabaseProfileStore:
    """ProfileStore over the Supabase REST APIs.

    The store keeps the signed-in session and uses its access token for
    learner-scoped requests. Admin deletion uses the service role key.
    """

    def __init__(
        self,
        settings: Optional[SupabaseSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize the store.

        Args:
            settings: Supabase configuration. Uses get_settings() if None.
            client: Preconfigured HTTP client, mainly for tests.
        """
        self._settings = settings or get_settings().supabase
        self._anon_key = self._settings.anon_key.get_secret_value()
        self._client = client or httpx.AsyncClient(
            base_url=self._settings.url.rstrip("/"),
            timeout=self._settings.timeout,
        )
        self._session: Optional[AuthSession] = None

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    def _headers(self, token: Optional[str] = None) -> dict[str, str]:
        if token is None:
            token = self._session.access_token if self._session else self._anon_key
        return {"apikey": self._anon_key, "Authorization": f"Bearer {token}"}

    def _service_headers(self) -> dict[str, str]:
        key = self._settings.service_role_key.get_secret_value()
        return {"apikey": key, "Authorization": f"Bearer {key}"}

    async def _request(
        self,
        method: str,
        path: str,
        headers: dict[str, str],
        **kwargs: Any,
    ) -> tuple[Any, Optional[str]]:
        """Send a request and return (payload, error)."""
        try:
            response = await self._client.request(method, path, headers=headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response)
            logger.warning(
                "Supabase request failed: %s %s -> %d: %s",
                method,
                path,
                e.response.status_code,
                message,
            )
            return None, message
        except httpx.HTTPError as e:
            logger.error("Supabase unreachable: %s %s: %s", method, path, str(e))
            return None, f"Network error: {str(e)}"

        if not response.content:
            return None, None
        try:
            return response.json(), None
        except ValueError:
            return None, "Invalid response from server"

    def _session_from(self, payload: Any, email: str) -> Optional[AuthSession]:
        if not isinstance(payload, dict):
            return None
        user = payload.get("user") if "access_token" in payload else payload
        if not isinstance(user, dict) or "id" not in user:
            return None
        return AuthSession(
            user_id=user["id"],
            email=user.get("email") or email,
            access_token=payload.get("access_token", ""),
            refresh_token=payload.get("refresh_token", ""),
        )

    def _profile_from(self, row: Any) -> StoreResult[LearnerProfile]:
        try:
            return StoreResult.success(LearnerProfile.model_validate(row))
        except ValidationError as e:
            logger.error("Malformed profile row: %s", str(e))
            return StoreResult.failure("Stored profile is malformed")

    async def get_session(self) -> StoreResult[AuthSession]:
        if self._session is None:
            return StoreResult.success(None)
        _, error = await self._request("GET", "/auth/v1/user", self._headers())
        if error is not None:
            logger.info("Stored session rejected, signing out locally: %s", error)
            self._session = None
            return StoreResult.success(None)
        return StoreResult.success(self._session)

    async def sign_in(self, email: str, password: str) -> StoreResult[AuthSession]:
        payload, error = await self._request(
            "POST",
            "/auth/v1/token",
            self._headers(self._anon_key),
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if error is not None:
            return StoreResult.failure(error)
        session = self._session_from(payload, email)
        if session is None or not session.access_token:
            return StoreResult.failure("Invalid response from server")
        self._session = session
        return StoreResult.success(session)

    async def sign_up(self, email: str, password: str, name: str) -> StoreResult[AuthSession]:
        payload, error = await self._request(
            "POST",
            "/auth/v1/signup",
            self._headers(self._anon_key),
            json={"email": email, "password": password, "data": {"full_name": name}},
        )
        if error is not None:
            return StoreResult.failure(error)
        session = self._session_from(payload, email)
        if session is None:
            return StoreResult.failure("Invalid response from server")
        if session.access_token:
            self._session = session
        return StoreResult.success(session)

    async def verify_code(self, email: str, code: str) -> StoreResult[AuthSession]:
        """Confirm an email with its one-time code.

        Codes from a fresh sign-up verify with type ``signup``; codes sent to
        existing accounts verify with type ``email``. The second is tried
        when the first is rejected.
        """
        first_error: Optional[str] = None
        for verify_type in ("signup", "email"):
            payload, error = await self._request(
                "POST",
                "/auth/v1/verify",
                self._headers(self._anon_key),
                json={"type": verify_type, "email": email, "token": code},
            )
            if error is None:
                session = self._session_from(payload, email)
                if session is None:
                    return StoreResult.failure("Invalid response from server")
                if session.access_token:
                    self._session = session
                return StoreResult.success(session)
            logger.debug("Verification with type=%s failed: %s", verify_type, error)
            first_error = first_error or error
        return StoreResult.failure(first_error or "Verification failed")

    async def sign_out(self) -> StoreResult[None]:
        if self._session is None:
            return StoreResult.success()
        _, error = await self._request("POST", "/auth/v1/logout", self._headers())
        self._session = None
        if error is not None:
            return StoreResult.failure(error)
        return StoreResult.success()

    async def get_profile(self, user_id: str) -> StoreResult[LearnerProfile]:
        rows, error = await self._request(
            "GET",
            f"/rest/v1/{PROFILES_TABLE}",
            self._headers(),
            params={"id": f"eq.{user_id}", "select": "*"},
        )
        if error is not None:
            return StoreResult.failure(error)
        if not rows:
            return StoreResult.success(None)
        return self._profile_from(rows[0])

    async def insert_profile(self, profile: LearnerProfile) -> StoreResult[LearnerProfile]:
        rows, error = await self._request(
            "POST",
            f"/rest/v1/{PROFILES_TABLE}",
            {**self._headers(), "Prefer": "return=representation"},
            json=profile.model_dump(mode="json"),
        )
        if error is not None:
            return StoreResult.failure(error)
        if not rows:
            return StoreResult.success(profile)
        return self._profile_from(rows[0])

    async def update_profile(
        self, user_id: str, fields: dict[str, Any]
    ) -> StoreResult[LearnerProfile]:
        """Upsert the given profile fields; other columns are left untouched."""
        unknown = set(fields) - PROFILE_UPDATE_FIELDS
        if unknown:
            return StoreResult.failure(
                f"Not updatable profile fields: {', '.join(sorted(unknown))}"
            )
        rows, error = await self._request(
            "POST",
            f"/rest/v1/{PROFILES_TABLE}",
            {
                **self._headers(),
                "Prefer": "resolution=merge-duplicates,return=representation",
            },
            json={"id": user_id, **fields},
        )
        if error is not None:
            return StoreResult.failure(error)
        if not rows:
            return StoreResult.success(None)
        return self._profile_from(rows[0])

    async def delete_user(self, user_id: str) -> StoreResult[None]:
        """Delete the auth user, then its profile row. Needs the service role key."""
        if not self._settings.has_service_role:
            return StoreResult.failure(SERVICE_ROLE_REQUIRED_MESSAGE)

        _, error = await self._request(
            "DELETE", f"/auth/v1/admin/users/{user_id}", self._service_headers()
        )
        if error is not None:
            return StoreResult.failure(error)

        _, error = await self._request(
            "DELETE",
            f"/rest/v1/{PROFILES_TABLE}",
            self._service_headers(),
            params={"id": f"eq.{user_id}"},
        )
        if error is not None:
            return StoreResult.failure(error)

        logger.info("User deleted: user_id=%s", user_id)
        return StoreResult.success()
