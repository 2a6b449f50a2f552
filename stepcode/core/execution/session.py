# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Execution session state shared by all script runners.

An ExecutionSession is the runtime state of one runner: the ordered output
buffer, the run state, and at most one pending input request. Runners write
program output into it, suspend on request_input(), and the UI layer resumes
them through provide_input() or aborts them through stop().

State transitions:

    idle -> running -> awaiting_input -> running -> ... -> idle
                 \\______________________________________-> stopped

Example:
    >>> session = ExecutionSession()
    >>> session.begin("lesson-py1")
    >>> session.write("Hello\\n")
    >>> session.finish()
    >>> session.text
    'Hello\\n'
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)

ERROR_MARKER = "❌ Error: "
STOPPED_MARKER = "⏹ Execution stopped.\n"

_LINE_NUMBER_PATTERN = re.compile(r"line (\d+)")


class ExecutionState(str, Enum):
    """Run state of an execution session."""

    IDLE = "idle"
    RUNNING = "running"
    AWAITING_INPUT = "awaiting_input"
    STOPPED = "stopped"


class ChunkKind(str, Enum):
    """Origin of an output chunk."""

    STDOUT = "stdout"
    STDERR = "stderr"
    ECHO = "echo"
    ERROR = "error"
    SYSTEM = "system"


@dataclass(frozen=True)
class OutputChunk:
    """One write to the output buffer.

    Attributes:
        kind: Where the text came from.
        text: The written text, exactly as produced.
    """

    kind: ChunkKind
    text: str


@dataclass
class ExecutionResult:
    """Outcome of one run.

    Attributes:
        script_id: Identifier of the script that ran.
        chunks: Ordered output chunks.
        error: Formatted error text if the run failed.
        error_line: 1-based source line extracted from the error, if any.
        stopped: Whether the run was cancelled.
        transformed: Whether the script ran with suspendable input.
    """

    script_id: str | None
    chunks: list[OutputChunk] = field(default_factory=list)
    error: str | None = None
    error_line: int | None = None
    stopped: bool = False
    transformed: bool = False

    @property
    def output(self) -> str:
        """Get the full output buffer as one string."""
        return "".join(chunk.text for chunk in self.chunks)

    @property
    def succeeded(self) -> bool:
        """Check whether the run finished without error or cancellation."""
        return self.error is None and not self.stopped


class ExecutionError(Exception):
    """Base exception for execution errors."""

    pass


class RunnerBusyError(ExecutionError):
    """Raised when a run is started while another is active."""

    pass


class InputAlreadyPendingError(ExecutionError):
    """Raised when a second input request is made while one is pending."""

    pass


def extract_error_line(error_text: str) -> int | None:
    """Extract the innermost source line number from an error message.

    Best effort: returns None when the text carries no ``line N`` mention.

    Args:
        error_text: Formatted error or traceback text.

    Returns:
        The last line number mentioned, or None.
    """
    matches = _LINE_NUMBER_PATTERN.findall(error_text)
    if not matches:
        return None
    return int(matches[-1])


class ExecutionSession:
    """Runtime state of one runner: output buffer, run state, pending input.

    The session does not execute anything itself. Runners call begin(),
    write(), request_input() and finish(); the UI calls provide_input() and
    stop().

    Attributes:
        script_id: Identity of the script currently or last run.
        state: Current ExecutionState.
        chunks: Ordered output chunks of the current run.
        error: Formatted error of the current run, if any.
        error_line: Source line extracted from error, if any.
    """

    def __init__(
        self,
        on_output: Optional[Callable[[OutputChunk], None]] = None,
        on_state: Optional[Callable[[ExecutionState], None]] = None,
    ) -> None:
        """Initialize an idle session.

        Args:
            on_output: Called for every chunk as it is appended.
            on_state: Called on every state change.
        """
        self._on_output = on_output
        self._on_state = on_state
        self._pending: asyncio.Future[str] | None = None
        self.script_id: str | None = None
        self.state = ExecutionState.IDLE
        self.chunks: list[OutputChunk] = []
        self.error: str | None = None
        self.error_line: int | None = None
        self.transformed = False

    @property
    def is_active(self) -> bool:
        """Check whether a run is in progress (running or awaiting input)."""
        return self.state in (ExecutionState.RUNNING, ExecutionState.AWAITING_INPUT)

    @property
    def is_stopped(self) -> bool:
        """Check whether the current run was cancelled."""
        return self.state is ExecutionState.STOPPED

    @property
    def awaiting_input(self) -> bool:
        """Check whether the program is suspended on an input request."""
        return self.state is ExecutionState.AWAITING_INPUT

    @property
    def text(self) -> str:
        """Get the output buffer as one string."""
        return "".join(chunk.text for chunk in self.chunks)

    def begin(self, script_id: str | None = None) -> None:
        """Start a new run, clearing the previous output.

        Args:
            script_id: Identity of the script about to run.

        Raises:
            RunnerBusyError: If a run is already active.
        """
        if self.is_active:
            raise RunnerBusyError(
                f"Script '{self.script_id}' is still running; stop it first"
            )
        self.script_id = script_id
        self.chunks = []
        self.error = None
        self.error_line = None
        self.transformed = False
        self._pending = None
        self._set_state(ExecutionState.RUNNING)

    def finish(self) -> ExecutionResult:
        """End the current run and return its result.

        A stopped run stays in the stopped state so that late writes from a
        script that is still unwinding are dropped.

        Returns:
            Snapshot of the run.
        """
        stopped = self.is_stopped
        if not stopped:
            self._set_state(ExecutionState.IDLE)
        return ExecutionResult(
            script_id=self.script_id,
            chunks=list(self.chunks),
            error=self.error,
            error_line=self.error_line,
            stopped=stopped,
            transformed=self.transformed,
        )

    def write(self, text: str, kind: ChunkKind = ChunkKind.STDOUT) -> None:
        """Append program output to the buffer.

        Writes after the run was stopped are dropped.

        Args:
            text: Text to append.
            kind: Chunk origin.
        """
        if not text or self.is_stopped:
            return
        self._append(OutputChunk(kind=kind, text=text))

    def fail(self, error_text: str) -> None:
        """Record a runtime error for the current run.

        The error is appended to the buffer with ERROR_MARKER and the source
        line is extracted for editor highlighting.

        Args:
            error_text: Formatted error text.
        """
        if self.is_stopped:
            return
        self.error = error_text
        self.error_line = extract_error_line(error_text)
        self._append(OutputChunk(kind=ChunkKind.ERROR, text=f"{ERROR_MARKER}{error_text}\n"))

    async def request_input(self, prompt: str = "") -> str:
        """Suspend the caller until the UI supplies a line of input.

        Flushes the prompt into the buffer, registers the pending future,
        and marks the session as awaiting input.

        Args:
            prompt: Prompt text written before suspending.

        Returns:
            The supplied line (without trailing newline), or an empty string
            if the run was stopped.

        Raises:
            InputAlreadyPendingError: If another request is still pending.
        """
        if self.is_stopped:
            return ""
        if self._pending is not None and not self._pending.done():
            raise InputAlreadyPendingError("An input request is already pending")

        self.write(prompt)
        future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        self._pending = future
        self._set_state(ExecutionState.AWAITING_INPUT)

        try:
            return await future
        finally:
            if self._pending is future:
                self._pending = None
            if self.state is ExecutionState.AWAITING_INPUT:
                self._set_state(ExecutionState.RUNNING)

    def provide_input(self, value: str) -> bool:
        """Resolve the pending input request with a learner-supplied line.

        The value plus a newline is echoed into the buffer first, so it lands
        right after the program output written before the suspension.

        Args:
            value: The line the learner entered.

        Returns:
            True if a request was pending and has been resolved.
        """
        future = self._pending
        if future is None or future.done():
            logger.debug("Input ignored, no pending request: script=%s", self.script_id)
            return False
        self.write(f"{value}\n", kind=ChunkKind.ECHO)
        future.set_result(value)
        self._set_state(ExecutionState.RUNNING)
        return True

    def stop(self) -> bool:
        """Cancel the current run.

        Resolves any pending input with an empty string so nothing awaits
        forever, flips the state to stopped, and appends exactly one stopped
        marker.

        Returns:
            True if an active run was stopped.
        """
        if not self.is_active:
            return False
        future = self._pending
        self._set_state(ExecutionState.STOPPED)
        if future is not None and not future.done():
            future.set_result("")
        self._append(OutputChunk(kind=ChunkKind.SYSTEM, text=STOPPED_MARKER))
        logger.info("Execution stopped: script=%s", self.script_id)
        return True

    def reset(self) -> None:
        """Return a finished or stopped session to idle with an empty buffer."""
        if self.is_active:
            raise RunnerBusyError("Cannot reset a session while a run is active")
        self.chunks = []
        self.error = None
        self.error_line = None
        self._pending = None
        self._set_state(ExecutionState.IDLE)

    def _append(self, chunk: OutputChunk) -> None:
        self.chunks.append(chunk)
        if self._on_output is not None:
            self._on_output(chunk)

    def _set_state(self, state: ExecutionState) -> None:
        if state is self.state:
            return
        self.state = state
        if self._on_state is not None:
            self._on_state(state)
