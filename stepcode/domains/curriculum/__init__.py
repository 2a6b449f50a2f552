# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Curriculum domain: content models, YAML loading, lesson status and progress."""

from stepcode.domains.curriculum.loader import CurriculumLoadError, load_curriculum
from stepcode.domains.curriculum.models import (
    CodingProblem,
    ConceptPage,
    ConceptProblem,
    ContentCategory,
    Curriculum,
    ExplanationBlock,
    Lesson,
    Problem,
    ProblemKind,
    Track,
)
from stepcode.domains.curriculum.progress import (
    LessonStatus,
    compute_progress,
    lesson_statuses,
)

__all__ = [
    "CodingProblem",
    "ConceptPage",
    "ConceptProblem",
    "ContentCategory",
    "Curriculum",
    "CurriculumLoadError",
    "ExplanationBlock",
    "Lesson",
    "LessonStatus",
    "Problem",
    "ProblemKind",
    "Track",
    "compute_progress",
    "lesson_statuses",
    "load_curriculum",
]
