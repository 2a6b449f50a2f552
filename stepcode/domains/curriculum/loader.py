# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Curriculum YAML loader.

Tracks are loaded from the curriculum directory (config/curriculum by
default), one YAML document per track, and validated against the Track
model. Track documents may nest the track under a top-level ``track`` key.
Tracks are ordered by their optional ``order`` key, then by file name.
"""

from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from stepcode.core.config.settings import get_settings
from stepcode.core.config.yaml_loader import YAMLLoadError, load_yaml_directory
from stepcode.domains.curriculum.models import Curriculum, Track
from stepcode.utils.logging import get_logger

logger = get_logger(__name__)


class CurriculumLoadError(Exception):
    """Raised when curriculum content fails to load or validate."""

    pass


def get_curriculum_directory() -> Path:
    """Get the configured curriculum directory."""
    return get_settings().curriculum.directory


def _track_data(name: str, document: dict[str, Any]) -> dict[str, Any]:
    data = dict(document.get("track", document))
    data.setdefault("id", name)
    return data


def _check_unique_ids(tracks: list[Track]) -> None:
    lesson_ids: set[str] = set()
    problem_ids: set[str] = set()
    for track in tracks:
        for lesson in track.lessons:
            if lesson.id in lesson_ids:
                raise CurriculumLoadError(f"Duplicate lesson id '{lesson.id}'")
            lesson_ids.add(lesson.id)
            for problem in lesson.problems:
                if problem.id in problem_ids:
                    raise CurriculumLoadError(
                        f"Duplicate problem id '{problem.id}' in lesson '{lesson.id}'"
                    )
                problem_ids.add(problem.id)


def load_curriculum(directory: Optional[Path] = None) -> Curriculum:
    """Load and validate every track in the curriculum directory.

    Args:
        directory: Directory holding track YAML files. Defaults to the
            configured curriculum directory.

    Returns:
        Validated Curriculum.

    Raises:
        CurriculumLoadError: If a file cannot be read, a track fails
            validation, or lesson/problem ids are not unique.
    """
    if directory is None:
        directory = get_curriculum_directory()

    try:
        documents = load_yaml_directory(directory)
    except YAMLLoadError as e:
        raise CurriculumLoadError(f"Failed to load curriculum: {e}") from e

    ordered: list[tuple[int, str, Track]] = []
    for name, document in documents.items():
        data = _track_data(name, document)
        order = data.pop("order", 0)
        try:
            track = Track.model_validate(data)
        except ValidationError as e:
            logger.warning("track_validation_failed", track=name, error=str(e))
            raise CurriculumLoadError(f"Validation failed for track '{name}': {e}") from e
        ordered.append((order, name, track))
        logger.debug("loaded_track", track_id=track.id, lesson_count=len(track.lessons))

    tracks = [track for _, _, track in sorted(ordered, key=lambda item: item[:2])]
    _check_unique_ids(tracks)

    curriculum = Curriculum(tracks=tracks)
    logger.info(
        "curriculum_loaded",
        track_count=len(tracks),
        lesson_count=curriculum.total_lessons,
    )
    return curriculum
