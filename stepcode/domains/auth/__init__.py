# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication domain package.

Example:
    >>> from stepcode.domains.auth import AuthService
    >>> profile = await AuthService(store).sign_in(email, password)
"""

from stepcode.domains.auth.service import (
    AccountBannedError,
    AuthFailedError,
    AuthService,
    AuthServiceError,
    AuthValidationError,
    SignUpOutcome,
)

__all__ = [
    "AccountBannedError",
    "AuthFailedError",
    "AuthService",
    "AuthServiceError",
    "AuthValidationError",
    "SignUpOutcome",
]
