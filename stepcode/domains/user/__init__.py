# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User domain package: learner profile and missed-concept records."""

from stepcode.domains.user.models import (
    PROFILE_UPDATE_FIELDS,
    LearnerProfile,
    MissedConcept,
)

__all__ = [
    "PROFILE_UPDATE_FIELDS",
    "LearnerProfile",
    "MissedConcept",
]
