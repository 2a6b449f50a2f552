# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures."""

import random
from collections.abc import Generator
from pathlib import Path

import pytest

from stepcode.core.config import clear_settings_cache
from stepcode.domains.curriculum import Curriculum, Lesson, load_curriculum
from stepcode.domains.curriculum.models import CodingProblem, ConceptPage, ConceptProblem
from stepcode.domains.user import LearnerProfile
from stepcode.infrastructure.persistence import InMemoryProfileStore

CURRICULUM_DIR = Path(__file__).resolve().parents[1] / "config" / "curriculum"


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep API keys from the developer's environment out of tests."""
    for name in (
        "GROQ_API_KEY",
        "SUPABASE_SERVICE_ROLE_KEY",
        "COMPILER_ENABLED",
        "COMPILER_BASE_URL",
        "ENVIRONMENT",
    ):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Content Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def curriculum() -> Curriculum:
    """Load the bundled curriculum."""
    return load_curriculum(CURRICULUM_DIR)


@pytest.fixture
def rng() -> random.Random:
    """Provide a seeded random source."""
    return random.Random(7)


@pytest.fixture
def concept_problem() -> ConceptProblem:
    """Provide a multiple-choice problem."""
    return ConceptProblem(
        id="q1",
        question="What does print(3 + 5) show?",
        options=["3 + 5", "8", "35"],
        answer="8",
        explanation="3 + 5 is evaluated first.",
    )


@pytest.fixture
def coding_problem() -> CodingProblem:
    """Provide a coding problem expecting two lines of output."""
    return CodingProblem(
        id="c1",
        question="Print Hello and 10.",
        answer='print("Hello")\nprint(10)',
        hint="Use print() twice.",
        example_output="Hello\n10",
    )


@pytest.fixture
def lesson(concept_problem: ConceptProblem, coding_problem: CodingProblem) -> Lesson:
    """Provide a lesson with every stage."""
    return Lesson(
        id="l1",
        title="Output",
        pages=[ConceptPage(id="l1_p1", title="print", content="print() shows values.")],
        concept_problems=[concept_problem],
        coding_problems=[coding_problem],
    )


# =============================================================================
# Learner Fixtures
# =============================================================================


@pytest.fixture
def profile() -> LearnerProfile:
    """Provide a fresh learner profile."""
    return LearnerProfile(id="user-1", name="Jini", email="jini@example.com")


@pytest.fixture
def store(profile: LearnerProfile) -> InMemoryProfileStore:
    """Provide an in-memory store holding the learner profile."""
    memory = InMemoryProfileStore()
    memory.add_profile(profile)
    return memory


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "slow: mark test as slow running")
