# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Curriculum content models.

Curriculum content is static: tracks contain lessons, lessons contain concept
pages, concept problems (multiple choice) and coding problems. Content is
validated once at load time and never mutated afterwards.

Problems are a tagged union on ``type``. A concept problem must list its
options and its answer must be one of them; a coding problem must carry the
expected output that grading compares against.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ContentCategory(str, Enum):
    """Kind of track or lesson."""

    TUTORIAL = "tutorial"
    LANGUAGE = "language"


class ProblemKind(str, Enum):
    """Problem type tag."""

    CONCEPT = "concept"
    CODING = "coding"


class ExplanationBlock(BaseModel):
    """Annotation attached to one line of a concept page's code.

    Attributes:
        id: Block identifier.
        code_line: 0-based code line the block explains.
        title: Short heading.
        text: Explanation text.
        type: Highlight color.
        badge: Badge label shown on the line.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    code_line: int = Field(ge=0)
    title: str
    text: str
    type: Literal["yellow", "blue", "purple", "red", "orange", "green"] = "blue"
    badge: str = ""


class ConceptPage(BaseModel):
    """One page of explanatory content with an annotated code example.

    Attributes:
        id: Page identifier.
        title: Page title.
        content: Explanation text.
        code: Example code.
        explanations: Line annotations.
        example_output: Output of the example code.
        trace_flow: 0-based line order for step-by-step tracing.
        variable_history: Variable values after each traced step.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    content: str
    code: str = ""
    explanations: list[ExplanationBlock] = Field(default_factory=list)
    example_output: Optional[str] = None
    trace_flow: list[int] = Field(default_factory=list)
    variable_history: list[dict[str, Any]] = Field(default_factory=list)


class ConceptProblem(BaseModel):
    """Multiple-choice problem graded by exact answer match."""

    model_config = ConfigDict(frozen=True)

    type: Literal["concept"] = "concept"
    id: str
    question: str
    options: list[str] = Field(min_length=1)
    answer: str
    hint: str = ""
    explanation: Optional[str] = None

    @model_validator(mode="after")
    def validate_answer_in_options(self) -> "ConceptProblem":
        """Ensure the answer is one of the options."""
        if self.answer not in self.options:
            raise ValueError(f"Answer of problem '{self.id}' is not one of its options")
        return self


class CodingProblem(BaseModel):
    """Coding problem graded by comparing program output.

    Attributes:
        answer: Reference solution code.
        example_input: Sample input shown to the learner.
        example_output: Expected output; the grading oracle.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["coding"] = "coding"
    id: str
    question: str
    answer: str
    hint: str = ""
    explanation: Optional[str] = None
    example_input: Optional[str] = None
    example_output: str


Problem = Annotated[Union[ConceptProblem, CodingProblem], Field(discriminator="type")]


class Lesson(BaseModel):
    """A lesson: concept pages, then quiz, then coding problems.

    Lesson status (locked/current/completed) is derived from the learner's
    completed lessons and is not part of the content.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    category: ContentCategory = ContentCategory.LANGUAGE
    pages: list[ConceptPage] = Field(default_factory=list)
    concept_problems: list[ConceptProblem] = Field(default_factory=list)
    coding_problems: list[CodingProblem] = Field(default_factory=list)

    @property
    def problems(self) -> list[Union[ConceptProblem, CodingProblem]]:
        """Get all problems, concept problems first."""
        return [*self.concept_problems, *self.coding_problems]

    def find_problem(self, problem_id: str) -> Optional[Union[ConceptProblem, CodingProblem]]:
        """Find a problem of this lesson by id."""
        for problem in self.problems:
            if problem.id == problem_id:
                return problem
        return None


class Track(BaseModel):
    """An ordered sequence of lessons.

    Attributes:
        icon_type: Icon shown for the track.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    category: ContentCategory = ContentCategory.LANGUAGE
    icon_type: Literal["python", "c", "algorithm"] = "python"
    lessons: list[Lesson] = Field(default_factory=list)


class Curriculum(BaseModel):
    """All tracks, with lookups by id."""

    model_config = ConfigDict(frozen=True)

    tracks: list[Track] = Field(default_factory=list)

    @property
    def total_lessons(self) -> int:
        """Count lessons across all tracks."""
        return sum(len(track.lessons) for track in self.tracks)

    def get_track(self, track_id: str) -> Optional[Track]:
        """Find a track by id."""
        return next((track for track in self.tracks if track.id == track_id), None)

    def get_lesson(self, lesson_id: str) -> Optional[Lesson]:
        """Find a lesson by id in any track."""
        for track in self.tracks:
            for lesson in track.lessons:
                if lesson.id == lesson_id:
                    return lesson
        return None

    def track_of(self, lesson_id: str) -> Optional[Track]:
        """Find the track containing a lesson."""
        for track in self.tracks:
            if any(lesson.id == lesson_id for lesson in track.lessons):
                return track
        return None
