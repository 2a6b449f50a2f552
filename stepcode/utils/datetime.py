# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for StepCode.

All timestamps written to the learner profile are timezone-aware UTC.
Pydantic serializes them as ISO 8601 strings.

Usage:
------
    from stepcode.utils.datetime import utc_now

    profile.updated_at = utc_now()
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)
