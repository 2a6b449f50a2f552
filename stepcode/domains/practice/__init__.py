# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Practice domain: the per-problem state machine of quiz and coding stages.

Example:
    >>> from stepcode.domains.practice import StageSession
    >>> session = StageSession(lesson.coding_problems)
"""

from stepcode.domains.practice.session import (
    EmptySubmissionError,
    PracticeError,
    ProblemNotResolvedError,
    ProblemResolvedError,
    ProblemResult,
    SessionSnapshot,
    StageCompletion,
    StageSession,
    StageType,
    build_feedback,
)

__all__ = [
    "EmptySubmissionError",
    "PracticeError",
    "ProblemNotResolvedError",
    "ProblemResolvedError",
    "ProblemResult",
    "SessionSnapshot",
    "StageCompletion",
    "StageSession",
    "StageType",
    "build_feedback",
]
