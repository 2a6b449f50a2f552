# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Gap Filler: review of previously missed problems.

The Gap Filler splits the learner's missed concepts into pending and
mastered, optionally by problem type. Reviewing a pending problem builds a
one-problem synthetic lesson, entered directly at its quiz or coding stage.
Finishing that lesson updates mastery only; it never counts as a completed
lesson.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from stepcode.domains.curriculum.models import CodingProblem, ConceptProblem, Lesson
from stepcode.domains.learning.stages import (
    REVIEW_LESSON_ID,
    ReviewProblemNotFoundError,
    Stage,
    stage_for_problem,
)
from stepcode.domains.user.models import MissedConcept


class ReviewFilter(str, Enum):
    """Problem type filter for the Gap Filler lists."""

    ALL = "all"
    CONCEPT = "concept"
    CODING = "coding"


@dataclass
class ReviewStart:
    """A synthetic review lesson and the stage to open it at."""

    lesson: Lesson
    stage: Stage


class GapFiller:
    """Partitions missed concepts and starts single-problem reviews."""

    def __init__(self, missed_concepts: Sequence[MissedConcept]) -> None:
        self._entries = list(missed_concepts)

    def pending(self, kind: ReviewFilter | str = ReviewFilter.ALL) -> list[MissedConcept]:
        """List missed concepts not yet mastered, in the order they were missed."""
        return [e for e in self._filtered(kind) if not e.mastered]

    def mastered(self, kind: ReviewFilter | str = ReviewFilter.ALL) -> list[MissedConcept]:
        """List missed concepts mastered through review."""
        return [e for e in self._filtered(kind) if e.mastered]

    def start_review(self, problem_id: str) -> ReviewStart:
        """Build the synthetic review lesson for one pending problem.

        Args:
            problem_id: Id of a pending missed problem.

        Returns:
            The review lesson and its entry stage.

        Raises:
            ReviewProblemNotFoundError: If the problem is not pending review.
        """
        entry = next((e for e in self.pending() if e.id == problem_id), None)
        if entry is None:
            raise ReviewProblemNotFoundError(f"Problem '{problem_id}' is not pending review")

        problem = entry.problem
        lesson = Lesson(
            id=REVIEW_LESSON_ID,
            title="Review",
            description=problem.question,
            concept_problems=[problem] if isinstance(problem, ConceptProblem) else [],
            coding_problems=[problem] if isinstance(problem, CodingProblem) else [],
        )
        return ReviewStart(lesson=lesson, stage=stage_for_problem(problem))

    def _filtered(self, kind: ReviewFilter | str) -> list[MissedConcept]:
        kind = ReviewFilter(kind)
        if kind is ReviewFilter.ALL:
            return list(self._entries)
        return [e for e in self._entries if e.kind == kind.value]
