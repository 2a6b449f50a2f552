# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lesson stages and the missed-concept merge rule."""

from enum import Enum
from typing import Sequence

from stepcode.domains.curriculum.models import ConceptProblem, Lesson, Problem
from stepcode.domains.user.models import MissedConcept

REVIEW_LESSON_ID = "__review__"


class Stage(str, Enum):
    """Stages of a lesson, in their fixed order."""

    CONCEPT = "concept"
    QUIZ = "quiz"
    CODING = "coding"


STAGE_ORDER = (Stage.CONCEPT, Stage.QUIZ, Stage.CODING)


class LessonFlowError(Exception):
    """Base exception for lesson flow errors."""

    pass


class StageUnavailableError(LessonFlowError):
    """Raised when a stage the lesson has no content for is requested."""

    pass


class ReviewProblemNotFoundError(LessonFlowError):
    """Raised when reviewing a problem that is not pending review."""

    pass


def available_stages(lesson: Lesson) -> list[Stage]:
    """List the stages a lesson has content for, in stage order."""
    content = {
        Stage.CONCEPT: lesson.pages,
        Stage.QUIZ: lesson.concept_problems,
        Stage.CODING: lesson.coding_problems,
    }
    return [stage for stage in STAGE_ORDER if content[stage]]


def stage_for_problem(problem: Problem) -> Stage:
    """Get the stage a problem is answered in."""
    return Stage.QUIZ if isinstance(problem, ConceptProblem) else Stage.CODING


def merge_missed(
    existing: Sequence[MissedConcept],
    missed: Sequence[Problem],
    lesson_problems: Sequence[Problem] = (),
    review: bool = False,
) -> list[MissedConcept]:
    """Merge one lesson run's missed problems into the long-term collection.

    A problem missed again replaces its existing entry in place, reset to not
    mastered; a newly missed problem is appended. In a review run, every
    lesson problem that was not missed again is marked mastered. Merging the
    same run twice gives the same collection.

    Args:
        existing: The learner's missed concepts.
        missed: Problems missed in this run.
        lesson_problems: All problems of the lesson that was run.
        review: Whether the run was a review lesson.

    Returns:
        The new missed-concept collection.
    """
    merged = [entry.model_copy() for entry in existing]
    positions = {entry.id: index for index, entry in enumerate(merged)}

    for problem in missed:
        entry = MissedConcept(problem=problem, mastered=False)
        if problem.id in positions:
            merged[positions[problem.id]] = entry
        else:
            positions[problem.id] = len(merged)
            merged.append(entry)

    if review:
        missed_ids = {problem.id for problem in missed}
        for problem in lesson_problems:
            if problem.id in positions and problem.id not in missed_ids:
                index = positions[problem.id]
                merged[index] = merged[index].model_copy(update={"mastered": True})

    return merged
