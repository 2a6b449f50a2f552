# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Problem-by-problem state machine for one lesson stage.

A StageSession walks the learner through the problems of a quiz or coding
stage. Per problem index it keeps the answer draft, the captured program
output (coding), and, once submitted, the frozen result. A resolved index
accepts no further drafts, outputs, or submissions until the session is
discarded.

Lifecycle of one index:

    unanswered -> drafted -> (executed) -> resolved

Example:
    >>> session = StageSession(lesson.concept_problems)
    >>> session.record_draft(0, "prints to the screen")
    >>> result = session.submit(0)
    >>> completion = session.advance()
"""

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Protocol, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from stepcode.core.execution.session import ExecutionResult
from stepcode.domains.curriculum.models import CodingProblem, ConceptProblem

logger = logging.getLogger(__name__)

AnyProblem = Union[ConceptProblem, CodingProblem]


class StageType(str, Enum):
    """Problem stages of a lesson."""

    QUIZ = "quiz"
    CODING = "coding"


class PracticeError(Exception):
    """Base exception for stage session errors."""

    pass


class EmptySubmissionError(PracticeError):
    """Raised when submitting or running an empty answer."""

    pass


class ProblemResolvedError(PracticeError):
    """Raised when changing a problem that already has a result."""

    pass


class ProblemNotResolvedError(PracticeError):
    """Raised when advancing past a problem that has no result yet."""

    pass


class ProblemResult(BaseModel):
    """Frozen outcome of one submitted problem.

    Attributes:
        correct: Whether the answer was correct.
        feedback: Markdown feedback shown to the learner.
        output: Captured program output (coding problems only).
    """

    model_config = ConfigDict(frozen=True)

    correct: bool
    feedback: str
    output: Optional[str] = None


class SessionSnapshot(BaseModel):
    """Serializable state of a stage session, for saving drafts."""

    stage_type: StageType
    current_index: int = 0
    drafts: dict[int, str] = Field(default_factory=dict)
    outputs: dict[int, str] = Field(default_factory=dict)
    results: dict[int, ProblemResult] = Field(default_factory=dict)


@dataclass
class StageCompletion:
    """Result of finishing a stage.

    Attributes:
        stage_type: The finished stage.
        missed: Problems answered incorrectly, in problem order.
        results: Result per problem index.
    """

    stage_type: StageType
    missed: list[AnyProblem] = field(default_factory=list)
    results: dict[int, ProblemResult] = field(default_factory=dict)


class Runner(Protocol):
    async def run(self, source: str, script_id: Optional[str] = None) -> ExecutionResult: ...


def build_feedback(problem: AnyProblem, correct: bool, output: Optional[str] = None) -> str:
    """Build the feedback text shown after a submission.

    Args:
        problem: The submitted problem.
        correct: Whether the answer was correct.
        output: Captured program output, for coding problems.

    Returns:
        Markdown feedback.
    """
    if correct:
        return f"### Correct! 🎉\n{problem.explanation or 'You nailed it!'}"

    if isinstance(problem, ConceptProblem):
        return (
            f"### Not quite 😢\nThe answer is **{problem.answer}**.\n\n"
            f"**Why:** {problem.explanation or 'Think it through once more.'}"
        )

    shown = (output or "").strip() or "(no output)"
    return (
        "### Not quite 😢\nYour program's output does not match the expected output.\n\n"
        f"**Expected:**\n```\n{problem.example_output.strip()}\n```\n"
        f"**Yours:**\n```\n{shown}\n```\n\n"
        f"**Hint:** {problem.hint or 'Compare the two outputs line by line.'}"
    )


class StageSession:
    """State machine over the problems of one quiz or coding stage.

    Attributes:
        problems: The stage's problems, in order.
        stage_type: Quiz or coding.
        current_index: Index of the problem being shown.
        drafts: Answer draft per index.
        outputs: Captured program output per index (coding).
        results: Frozen result per resolved index.
    """

    def __init__(
        self,
        problems: Sequence[AnyProblem],
        stage_type: Optional[StageType] = None,
        on_draft: Optional[Callable[["StageSession"], None]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Initialize a session at the first problem.

        Args:
            problems: Problems of the stage; all of one type.
            stage_type: Stage type. Inferred from the problems if None.
            on_draft: Called after every draft change, for draft syncing.
                Failures are logged and never reach the learner.
            rng: Random source for option shuffling.

        Raises:
            ValueError: If there are no problems or types are mixed.
        """
        if not problems:
            raise ValueError("A stage session needs at least one problem")

        inferred = (
            StageType.QUIZ if isinstance(problems[0], ConceptProblem) else StageType.CODING
        )
        expected_class = ConceptProblem if inferred is StageType.QUIZ else CodingProblem
        if not all(isinstance(problem, expected_class) for problem in problems):
            raise ValueError("A stage session cannot mix concept and coding problems")
        if stage_type is not None and StageType(stage_type) is not inferred:
            raise ValueError(f"Problems do not belong to a {StageType(stage_type).value} stage")

        self.problems: list[AnyProblem] = list(problems)
        self.stage_type = inferred
        self.current_index = 0
        self.drafts: dict[int, str] = {}
        self.outputs: dict[int, str] = {}
        self.results: dict[int, ProblemResult] = {}
        self._on_draft = on_draft
        self._rng = rng or random.Random()
        self._option_orders: dict[int, list[str]] = {}
        self._completion: Optional[StageCompletion] = None
        self.enter()

    @property
    def current_problem(self) -> AnyProblem:
        """Get the problem being shown."""
        return self.problems[self.current_index]

    @property
    def is_last(self) -> bool:
        """Check whether the current problem is the last one."""
        return self.current_index == len(self.problems) - 1

    @property
    def is_complete(self) -> bool:
        """Check whether the stage has been finished."""
        return self._completion is not None

    def is_resolved(self, index: int) -> bool:
        """Check whether a problem has a result."""
        return index in self.results

    def enter(self) -> None:
        """Mark a (re-)entry into the stage, reshuffling option order."""
        self._option_orders = {
            index: self._rng.sample(problem.options, len(problem.options))
            for index, problem in enumerate(self.problems)
            if isinstance(problem, ConceptProblem)
        }

    def options_for(self, index: int) -> list[str]:
        """Get the option order shown for a concept problem.

        The order is stable until the next enter().
        """
        self._check_index(index)
        return list(self._option_orders.get(index, []))

    def record_draft(self, index: int, value: str) -> None:
        """Store the learner's in-progress answer.

        Raises:
            ProblemResolvedError: If the problem already has a result.
        """
        self._check_unresolved(index)
        self.drafts[index] = value
        self._notify_draft()

    def record_output(self, index: int, output: str) -> None:
        """Store the captured program output for a coding problem.

        Raises:
            ProblemResolvedError: If the problem already has a result.
        """
        self._check_unresolved(index)
        self.outputs[index] = output

    async def execute(self, index: int, runner: Runner) -> ExecutionResult:
        """Run the draft of a coding problem and capture its output.

        Args:
            index: Problem index.
            runner: Runner executing the draft.

        Returns:
            The execution result.

        Raises:
            EmptySubmissionError: If the draft is empty.
            ProblemResolvedError: If the problem already has a result.
        """
        self._check_unresolved(index)
        source = self.drafts.get(index, "")
        if not source.strip():
            raise EmptySubmissionError("Write some code before running it")

        result = await runner.run(source, script_id=self.problems[index].id)
        if not self.is_resolved(index):
            self.outputs[index] = result.output
        return result

    def submit(self, index: Optional[int] = None) -> ProblemResult:
        """Grade a problem and freeze its result.

        Concept answers must equal the answer exactly; coding output must
        equal the expected output after trimming surrounding whitespace.
        Submitting an already resolved problem returns its stored result.

        Args:
            index: Problem index. Defaults to the current problem.

        Returns:
            The problem's result.

        Raises:
            EmptySubmissionError: If there is no answer to grade.
        """
        if index is None:
            index = self.current_index
        self._check_index(index)
        if index in self.results:
            return self.results[index]

        problem = self.problems[index]
        draft = self.drafts.get(index)

        if isinstance(problem, ConceptProblem):
            if draft is None:
                raise EmptySubmissionError("Choose an answer first")
            correct = draft == problem.answer
            output = None
        else:
            if draft is None or not draft.strip():
                raise EmptySubmissionError("Write some code before submitting")
            output = self.outputs.get(index, "")
            correct = output.strip() == problem.example_output.strip()

        result = ProblemResult(
            correct=correct,
            feedback=build_feedback(problem, correct, output),
            output=output,
        )
        self.results[index] = result
        logger.debug(
            "Problem submitted: problem=%s, correct=%s", problem.id, result.correct
        )
        self._notify_draft()
        return result

    def advance(self) -> Optional[StageCompletion]:
        """Move to the next problem, or finish the stage after the last one.

        Returns:
            StageCompletion when the stage is finished, otherwise None.

        Raises:
            ProblemNotResolvedError: If the current problem has no result.
        """
        if self._completion is not None:
            return self._completion
        if not self.is_resolved(self.current_index):
            raise ProblemNotResolvedError("Submit the current problem first")

        if not self.is_last:
            self.current_index += 1
            self._notify_draft()
            return None

        self._completion = StageCompletion(
            stage_type=self.stage_type,
            missed=[
                self.problems[index]
                for index in range(len(self.problems))
                if not self.results[index].correct
            ],
            results=dict(self.results),
        )
        return self._completion

    def reset(self, index: int) -> None:
        """Clear the draft and output of an unresolved problem.

        Raises:
            ProblemResolvedError: If the problem already has a result.
        """
        self._check_unresolved(index)
        self.drafts.pop(index, None)
        self.outputs.pop(index, None)
        self._notify_draft()

    def snapshot(self) -> SessionSnapshot:
        """Capture drafts, outputs, results and position."""
        return SessionSnapshot(
            stage_type=self.stage_type,
            current_index=self.current_index,
            drafts=dict(self.drafts),
            outputs=dict(self.outputs),
            results=dict(self.results),
        )

    @classmethod
    def restore(
        cls,
        problems: Sequence[AnyProblem],
        snapshot: SessionSnapshot,
        on_draft: Optional[Callable[["StageSession"], None]] = None,
        rng: Optional[random.Random] = None,
    ) -> "StageSession":
        """Rebuild a session from a snapshot.

        Entries for indices beyond the problem list are dropped.
        """
        session = cls(problems, stage_type=snapshot.stage_type, rng=rng)
        count = len(session.problems)
        session.drafts = {i: v for i, v in snapshot.drafts.items() if 0 <= i < count}
        session.outputs = {i: v for i, v in snapshot.outputs.items() if 0 <= i < count}
        session.results = {i: v for i, v in snapshot.results.items() if 0 <= i < count}
        session.current_index = min(max(snapshot.current_index, 0), count - 1)
        session._on_draft = on_draft
        return session

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.problems):
            raise IndexError(f"Problem index {index} out of range")

    def _check_unresolved(self, index: int) -> None:
        self._check_index(index)
        if index in self.results:
            raise ProblemResolvedError(
                f"Problem '{self.problems[index].id}' has already been submitted"
            )

    def _notify_draft(self) -> None:
        if self._on_draft is None:
            return
        try:
            self._on_draft(self)
        except Exception as e:
            logger.warning("Draft sync callback failed: %s", str(e))
