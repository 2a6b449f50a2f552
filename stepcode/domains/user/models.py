# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Learner profile models.

The profile is the learner's long-term record: completed lessons, derived
progress, and missed concepts. It changes only when a lesson stage finishes
(drafts are kept in ``settings`` and never touch progress or mastery).
"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from stepcode.domains.curriculum.models import Problem

PROFILE_UPDATE_FIELDS = frozenset(
    {
        "name",
        "progress",
        "completed_lesson_ids",
        "missed_concepts",
        "last_track_id",
        "role",
        "is_banned",
        "theme",
        "settings",
        "updated_at",
    }
)


class MissedConcept(BaseModel):
    """A problem the learner got wrong, with its review state.

    Attributes:
        problem: Snapshot of the problem as it was missed.
        mastered: Whether a later review answered it correctly.
    """

    problem: Problem
    mastered: bool = False

    @property
    def id(self) -> str:
        """Get the problem id."""
        return self.problem.id

    @property
    def kind(self) -> str:
        """Get the problem type tag."""
        return self.problem.type


class LearnerProfile(BaseModel):
    """A learner's profile row.

    Attributes:
        id: Auth user id.
        name: Display name.
        email: Sign-in email.
        role: ``user`` or ``admin``.
        is_banned: Whether the account is suspended.
        progress: Overall progress percentage, derived from completed lessons.
        completed_lesson_ids: Completed lessons, without duplicates.
        missed_concepts: Missed problems in the order they were first missed.
        last_track_id: Track the learner last worked on.
        theme: UI theme preference.
        settings: Free-form preferences; saved drafts live under ``drafts``.
        updated_at: Last profile update.
    """

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    id: str
    name: str = ""
    email: str = ""
    role: Literal["user", "admin"] = "user"
    is_banned: bool = False
    progress: int = Field(default=0, ge=0, le=100)
    completed_lesson_ids: list[str] = Field(default_factory=list)
    missed_concepts: list[MissedConcept] = Field(default_factory=list)
    last_track_id: Optional[str] = None
    theme: Literal["light", "dark"] = "dark"
    settings: dict[str, Any] = Field(default_factory=dict)
    updated_at: Optional[datetime] = None

    def fields_for_update(self, *names: str) -> dict[str, Any]:
        """Serialize selected fields for a partial profile update.

        Args:
            *names: Field names, each one of PROFILE_UPDATE_FIELDS.

        Returns:
            JSON-compatible mapping of the selected fields.

        Raises:
            ValueError: If a name is not an updatable field.
        """
        unknown = set(names) - PROFILE_UPDATE_FIELDS
        if unknown:
            raise ValueError(f"Not updatable profile fields: {', '.join(sorted(unknown))}")
        return self.model_dump(mode="json", include=set(names))
