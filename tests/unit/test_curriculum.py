# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for curriculum models, loading and progress."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from stepcode.domains.curriculum import (
    CodingProblem,
    ConceptProblem,
    CurriculumLoadError,
    Lesson,
    LessonStatus,
    Track,
    compute_progress,
    lesson_statuses,
    load_curriculum,
)

TRACK_YAML = """\
track:
  title: Demo
  order: {order}
  lessons:
    - id: {lesson_id}
      title: One
      concept_problems:
        - type: concept
          id: {lesson_id}_q1
          question: Pick a
          options: [a, b]
          answer: a
"""


class TestProblemModels:
    """Tests for problem validation."""

    def test_answer_must_be_an_option(self) -> None:
        """Test that a concept answer outside its options is rejected."""
        with pytest.raises(ValidationError):
            ConceptProblem(id="q", question="?", options=["a", "b"], answer="c")

    def test_coding_problem_needs_expected_output(self) -> None:
        """Test that coding problems carry their grading oracle."""
        with pytest.raises(ValidationError):
            CodingProblem(id="c", question="?", answer="print(1)")

    def test_problems_are_discriminated_by_type(self) -> None:
        """Test that lesson problems parse into the right classes."""
        lesson = Lesson.model_validate(
            {
                "id": "l",
                "title": "L",
                "concept_problems": [
                    {"type": "concept", "id": "q", "question": "?", "options": ["a"], "answer": "a"}
                ],
                "coding_problems": [
                    {"type": "coding", "id": "c", "question": "?", "answer": "", "example_output": "1"}
                ],
            }
        )

        assert isinstance(lesson.problems[0], ConceptProblem)
        assert isinstance(lesson.find_problem("c"), CodingProblem)
        assert lesson.find_problem("missing") is None


class TestLoadCurriculum:
    """Tests for load_curriculum function."""

    def test_bundled_curriculum_loads(self, curriculum) -> None:
        """Test that the shipped content validates."""
        python = curriculum.get_track("python_basic")

        assert [track.id for track in curriculum.tracks] == ["python_basic", "c_basic"]
        assert python.lessons[0].id == "py1"
        assert python.lessons[0].pages[0].example_output == "Hello\n10"
        assert curriculum.track_of("c1").id == "c_basic"
        assert curriculum.total_lessons == 4

    def test_track_id_defaults_to_file_name(self, tmp_path: Path) -> None:
        """Test the id fallback and the order key."""
        (tmp_path / "zeta.yaml").write_text(TRACK_YAML.format(order=1, lesson_id="z1"))
        (tmp_path / "alpha.yaml").write_text(TRACK_YAML.format(order=2, lesson_id="a1"))

        curriculum = load_curriculum(tmp_path)

        assert [track.id for track in curriculum.tracks] == ["zeta", "alpha"]

    def test_duplicate_lesson_ids_are_rejected(self, tmp_path: Path) -> None:
        """Test that lesson ids are unique across tracks."""
        (tmp_path / "one.yaml").write_text(TRACK_YAML.format(order=1, lesson_id="x1"))
        (tmp_path / "two.yaml").write_text(TRACK_YAML.format(order=2, lesson_id="x1"))

        with pytest.raises(CurriculumLoadError) as exc_info:
            load_curriculum(tmp_path)

        assert "Duplicate lesson id 'x1'" in str(exc_info.value)

    def test_invalid_track_is_rejected(self, tmp_path: Path) -> None:
        """Test that validation errors name the track."""
        (tmp_path / "broken.yaml").write_text("track:\n  lessons: 5\n")

        with pytest.raises(CurriculumLoadError) as exc_info:
            load_curriculum(tmp_path)

        assert "broken" in str(exc_info.value)

    def test_missing_directory_is_rejected(self, tmp_path: Path) -> None:
        """Test that a missing content directory fails to load."""
        with pytest.raises(CurriculumLoadError):
            load_curriculum(tmp_path / "missing")


class TestProgress:
    """Tests for lesson status and progress."""

    @pytest.fixture
    def track(self) -> Track:
        """Provide a three-lesson track."""
        return Track(
            id="t",
            title="T",
            lessons=[Lesson(id=f"l{n}", title=f"L{n}") for n in (1, 2, 3)],
        )

    def test_first_lesson_is_current(self, track: Track) -> None:
        """Test statuses for a new learner."""
        statuses = lesson_statuses(track, [])

        assert list(statuses.values()) == [
            LessonStatus.CURRENT,
            LessonStatus.LOCKED,
            LessonStatus.LOCKED,
        ]

    def test_next_lesson_unlocks(self, track: Track) -> None:
        """Test that completing a lesson unlocks the next."""
        statuses = lesson_statuses(track, ["l1"])

        assert statuses["l1"] is LessonStatus.COMPLETED
        assert statuses["l2"] is LessonStatus.CURRENT
        assert statuses["l3"] is LessonStatus.LOCKED

    @pytest.mark.parametrize(
        ("completed", "total", "expected"),
        [
            (["a", "b", "c"], 10, 30),
            (["a"], 3, 33),
            (["a", "b"], 3, 67),
            (["a"], 8, 13),
            (["a", "a"], 1, 100),
            (["a", "b"], 1, 100),
            ([], 0, 0),
        ],
    )
    def test_compute_progress(self, completed, total, expected) -> None:
        """Test rounding, duplicates and the upper bound."""
        assert compute_progress(completed, total) == expected
