# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lesson status and overall progress, derived from completed lessons."""

from enum import Enum
from typing import Iterable

from stepcode.domains.curriculum.models import Track


class LessonStatus(str, Enum):
    """Derived status of a lesson for one learner."""

    LOCKED = "locked"
    CURRENT = "current"
    COMPLETED = "completed"


def lesson_statuses(track: Track, completed_ids: Iterable[str]) -> dict[str, LessonStatus]:
    """Derive the status of every lesson in a track.

    A lesson is completed if its id is in the completed set. Otherwise it is
    current if it is the first lesson or every lesson before it is completed,
    and locked in all other cases.

    Args:
        track: The track.
        completed_ids: Ids of lessons the learner has completed.

    Returns:
        Mapping of lesson id to status, in track order.
    """
    completed = set(completed_ids)
    statuses: dict[str, LessonStatus] = {}
    predecessors_done = True
    for lesson in track.lessons:
        if lesson.id in completed:
            statuses[lesson.id] = LessonStatus.COMPLETED
        elif predecessors_done:
            statuses[lesson.id] = LessonStatus.CURRENT
        else:
            statuses[lesson.id] = LessonStatus.LOCKED
        predecessors_done = predecessors_done and lesson.id in completed
    return statuses


def compute_progress(completed_ids: Iterable[str], total_lessons: int) -> int:
    """Compute overall progress as a whole percentage.

    ``min(100, round_half_up(100 * unique_completed / total))``; 0 when
    there are no lessons.

    Example:
        >>> compute_progress(["a", "b", "c"], 10)
        30
        >>> compute_progress(["a", "a"], 1)
        100
    """
    if total_lessons <= 0:
        return 0
    unique = len(set(completed_ids))
    return min(100, (200 * unique + total_lessons) // (2 * total_lessons))
