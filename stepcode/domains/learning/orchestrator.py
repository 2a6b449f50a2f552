# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lesson stage orchestrator.

Drives one open lesson through its stages (concept, quiz, coding). Stages
are tabs: the learner may jump to any available stage at any time, and the
stage sessions keep their state across jumps. Finishing a stage moves
forward to the next available stage; finishing the last one applies the
end-of-lesson policy:

1. Missed problems of the run are merged into the learner's missed
   concepts (see merge_missed()).
2. An ordinary lesson is marked completed and progress is recomputed; the
   profile update is persisted.
3. A review lesson only persists the missed concepts and routes back to
   the Gap Filler.

Answer drafts are saved into ``profile.settings["drafts"][lesson_id]`` in
the background while the learner works, and restored when the lesson is
opened again.

Example:
    >>> flow = LessonOrchestrator(lesson, profile, store, curriculum.total_lessons)
    >>> session = flow.session(Stage.QUIZ)
    >>> session.record_draft(0, "prints to the screen")
    >>> session.submit(0)
    >>> outcome = await flow.advance()
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from pydantic import ValidationError

from stepcode.domains.curriculum.models import Lesson, Problem
from stepcode.domains.curriculum.progress import compute_progress
from stepcode.domains.learning.stages import (
    REVIEW_LESSON_ID,
    LessonFlowError,
    Stage,
    StageUnavailableError,
    available_stages,
    merge_missed,
)
from stepcode.domains.practice.session import SessionSnapshot, StageSession
from stepcode.domains.user.models import LearnerProfile
from stepcode.infrastructure.persistence.base import ProfileStore
from stepcode.utils.datetime import utc_now

logger = logging.getLogger(__name__)

DRAFTS_KEY = "drafts"


class Route(str, Enum):
    """Where the learner goes after a lesson ends."""

    CURRICULUM = "curriculum"
    GAP_FILLER = "gap_filler"


@dataclass
class LessonOutcome:
    """Result of finishing a lesson.

    Attributes:
        lesson_id: The finished lesson.
        completed: Whether the lesson was marked completed.
        progress: Progress percentage after the lesson.
        missed: Problems missed in this run, in stage order.
        route: Where to send the learner next.
        sync_error: Error from persisting the profile, if any. The local
            profile is updated either way.
    """

    lesson_id: str
    completed: bool
    progress: int
    missed: list[Problem] = field(default_factory=list)
    route: Route = Route.CURRICULUM
    sync_error: Optional[str] = None


class LessonOrchestrator:
    """Stage flow and end-of-lesson policy for one open lesson.

    Attributes:
        lesson: The open lesson; None after a review lesson has finished.
        profile: The learner's profile, updated in place.
        stages: Stages available in this lesson.
        current_stage: Stage being shown.
    """

    def __init__(
        self,
        lesson: Lesson,
        profile: LearnerProfile,
        store: ProfileStore,
        total_lessons: int,
        track_id: Optional[str] = None,
        start_stage: Optional[Stage] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Open a lesson.

        Args:
            lesson: Lesson to run; a review lesson uses REVIEW_LESSON_ID.
            profile: Learner profile.
            store: Profile store for persisting results and drafts.
            total_lessons: Lesson count of the whole curriculum.
            track_id: Track the lesson belongs to.
            start_stage: Stage to open at. Defaults to the first available.
            rng: Random source for option shuffling.

        Raises:
            LessonFlowError: If the lesson has no content.
            StageUnavailableError: If start_stage is not available.
        """
        self.stages = available_stages(lesson)
        if not self.stages:
            raise LessonFlowError(f"Lesson '{lesson.id}' has no content")

        self.lesson: Optional[Lesson] = lesson
        self.profile = profile
        self._lesson_id = lesson.id
        self._store = store
        self._total_lessons = total_lessons
        self._track_id = track_id
        self._rng = rng or random.Random()
        self._sessions: dict[Stage, StageSession] = {}
        self._missed: dict[Stage, list[Problem]] = {}
        self._sync_tasks: set[asyncio.Task] = set()
        self._sync_lock = asyncio.Lock()
        self._finished = False

        self.current_stage = self._check_stage(start_stage or self.stages[0])
        if not self.is_review:
            self._restore_drafts()

    @property
    def is_review(self) -> bool:
        """Check whether this is a synthetic review lesson."""
        return self._lesson_id == REVIEW_LESSON_ID

    @property
    def is_finished(self) -> bool:
        """Check whether the lesson was finished or abandoned."""
        return self._finished

    def session(self, stage: Optional[Stage] = None) -> StageSession:
        """Get the session of a quiz or coding stage, creating it if needed.

        Args:
            stage: Stage. Defaults to the current stage.

        Raises:
            StageUnavailableError: For the concept stage or an unavailable stage.
        """
        stage = self._check_stage(stage or self.current_stage)
        if stage is Stage.CONCEPT:
            raise StageUnavailableError("The concept stage has no problem session")

        if stage not in self._sessions:
            lesson = self._open_lesson()
            problems = (
                lesson.concept_problems if stage is Stage.QUIZ else lesson.coding_problems
            )
            self._sessions[stage] = StageSession(
                problems, on_draft=self._on_draft, rng=self._rng
            )
        return self._sessions[stage]

    def jump_to(self, stage: Stage) -> None:
        """Switch to any available stage, keeping every stage's state.

        Raises:
            StageUnavailableError: If the lesson has no content for the stage.
        """
        stage = self._check_stage(stage)
        self._open_lesson()
        if stage is not self.current_stage and stage in self._sessions:
            self._sessions[stage].enter()
        self.current_stage = stage

    async def advance(self) -> Optional[LessonOutcome]:
        """Advance the current stage; finish the lesson after the last stage.

        The concept stage finishes directly. A problem stage advances its
        session and finishes once its last problem is done.

        Returns:
            LessonOutcome when the lesson is finished, otherwise None.

        Raises:
            ProblemNotResolvedError: If the current problem has no result.
            LessonFlowError: If the lesson is already finished.
        """
        self._open_lesson()
        stage = self.current_stage

        if stage is Stage.CONCEPT:
            self._missed[stage] = []
        else:
            completion = self.session(stage).advance()
            if completion is None:
                return None
            self._missed[stage] = list(completion.missed)

        position = self.stages.index(stage)
        if position + 1 < len(self.stages):
            self.jump_to(self.stages[position + 1])
            return None

        return await self._finish()

    def abandon(self) -> None:
        """Close the lesson without results, discarding its saved drafts."""
        if self._finished:
            return
        self._sessions.clear()
        self._finished = True
        drafts = self.profile.settings.get(DRAFTS_KEY)
        if isinstance(drafts, dict) and drafts.pop(self._lesson_id, None) is not None:
            self._schedule_draft_sync()
        logger.info("Lesson abandoned: lesson=%s", self._lesson_id)

    async def wait_for_sync(self) -> None:
        """Wait until every background draft sync has finished."""
        while self._sync_tasks:
            await asyncio.gather(*list(self._sync_tasks))

    async def _finish(self) -> LessonOutcome:
        lesson = self._open_lesson()
        missed = [problem for stage in self.stages for problem in self._missed.get(stage, [])]
        profile = self.profile

        profile.missed_concepts = merge_missed(
            profile.missed_concepts,
            missed,
            lesson_problems=lesson.problems,
            review=self.is_review,
        )

        if self.is_review:
            fields = ["missed_concepts"]
            completed = False
            route = Route.GAP_FILLER
        else:
            if lesson.id not in profile.completed_lesson_ids:
                profile.completed_lesson_ids = [*profile.completed_lesson_ids, lesson.id]
            profile.progress = compute_progress(
                profile.completed_lesson_ids, self._total_lessons
            )
            if self._track_id is not None:
                profile.last_track_id = self._track_id
            drafts = profile.settings.get(DRAFTS_KEY)
            if isinstance(drafts, dict):
                drafts.pop(lesson.id, None)
            profile.updated_at = utc_now()
            fields = [
                "missed_concepts",
                "completed_lesson_ids",
                "progress",
                "last_track_id",
                "settings",
                "updated_at",
            ]
            completed = True
            route = Route.CURRICULUM

        self._sessions.clear()
        self._finished = True
        await self.wait_for_sync()

        result = await self._store.update_profile(
            profile.id, profile.fields_for_update(*fields)
        )
        if not result.ok:
            logger.warning(
                "Lesson result not saved: lesson=%s, error=%s", lesson.id, result.error
            )

        if self.is_review:
            self.lesson = None

        logger.info(
            "Lesson finished: lesson=%s, completed=%s, missed=%d, progress=%d",
            lesson.id,
            completed,
            len(missed),
            profile.progress,
        )
        return LessonOutcome(
            lesson_id=lesson.id,
            completed=completed,
            progress=profile.progress,
            missed=missed,
            route=route,
            sync_error=result.error,
        )

    def _check_stage(self, stage: Stage | str) -> Stage:
        stage = Stage(stage)
        if stage not in self.stages:
            raise StageUnavailableError(
                f"Lesson '{self._lesson_id}' has no {stage.value} stage"
            )
        return stage

    def _open_lesson(self) -> Lesson:
        if self._finished or self.lesson is None:
            raise LessonFlowError(f"Lesson '{self._lesson_id}' is already closed")
        return self.lesson

    def _restore_drafts(self) -> None:
        drafts = self.profile.settings.get(DRAFTS_KEY)
        saved = drafts.get(self._lesson_id) if isinstance(drafts, dict) else None
        if not isinstance(saved, dict):
            return
        lesson = self._open_lesson()
        for stage_value, data in saved.items():
            try:
                stage = Stage(stage_value)
                if stage is Stage.CONCEPT or stage not in self.stages:
                    continue
                snapshot = SessionSnapshot.model_validate(data)
                problems = (
                    lesson.concept_problems
                    if stage is Stage.QUIZ
                    else lesson.coding_problems
                )
                self._sessions[stage] = StageSession.restore(
                    problems, snapshot, on_draft=self._on_draft, rng=self._rng
                )
            except (ValueError, ValidationError) as e:
                logger.warning(
                    "Saved drafts ignored: lesson=%s, stage=%s, error=%s",
                    self._lesson_id,
                    stage_value,
                    str(e),
                )

    def _on_draft(self, session: StageSession) -> None:
        if self.is_review or self._finished:
            return
        drafts = self.profile.settings.setdefault(DRAFTS_KEY, {})
        drafts[self._lesson_id] = {
            stage.value: stage_session.snapshot().model_dump(mode="json")
            for stage, stage_session in self._sessions.items()
        }
        self._schedule_draft_sync()

    def _schedule_draft_sync(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("Draft sync skipped, no running event loop")
            return
        task = loop.create_task(self._sync_drafts())
        self._sync_tasks.add(task)
        task.add_done_callback(self._sync_tasks.discard)

    async def _sync_drafts(self) -> None:
        async with self._sync_lock:
            fields: dict[str, Any] = self.profile.fields_for_update("settings")
            result = await self._store.update_profile(self.profile.id, fields)
        if not result.ok:
            logger.warning(
                "Draft sync failed: lesson=%s, error=%s", self._lesson_id, result.error
            )
