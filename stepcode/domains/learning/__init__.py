# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Learning domain: lesson stage flow, mastery merge, and Gap Filler review.

Example:
    >>> from stepcode.domains.learning import GapFiller, LessonOrchestrator
    >>> review = GapFiller(profile.missed_concepts).start_review("py1_c2")
    >>> flow = LessonOrchestrator(
    ...     review.lesson, profile, store, total, start_stage=review.stage
    ... )
"""

from stepcode.domains.learning.gap_filler import GapFiller, ReviewFilter, ReviewStart
from stepcode.domains.learning.orchestrator import (
    DRAFTS_KEY,
    LessonOrchestrator,
    LessonOutcome,
    Route,
)
from stepcode.domains.learning.stages import (
    REVIEW_LESSON_ID,
    STAGE_ORDER,
    LessonFlowError,
    ReviewProblemNotFoundError,
    Stage,
    StageUnavailableError,
    available_stages,
    merge_missed,
    stage_for_problem,
)

__all__ = [
    "DRAFTS_KEY",
    "GapFiller",
    "LessonFlowError",
    "LessonOrchestrator",
    "LessonOutcome",
    "REVIEW_LESSON_ID",
    "ReviewFilter",
    "ReviewProblemNotFoundError",
    "ReviewStart",
    "Route",
    "STAGE_ORDER",
    "Stage",
    "StageUnavailableError",
    "available_stages",
    "merge_missed",
    "stage_for_problem",
]
