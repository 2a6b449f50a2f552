# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Runner for compiled-language programs (C).

C programs cannot run in-process. Each round sends the source and every
input line typed so far to the compile service; when the service succeeds
its output is authoritative and the run ends. When it fails, the AI tutor
simulates the terminal instead. A simulated transcript that stops at the
input marker makes the runner show the new output, wait for the learner's
next line, and start another round with that line appended.

Stopping cancels the round in flight, and the stop flag of the session is
checked after every network round trip, so a stopped run never writes
further output.
"""

import asyncio
import logging
from typing import Optional

from stepcode.core.config.settings import RunnerSettings, get_settings
from stepcode.core.execution.session import (
    ChunkKind,
    ExecutionResult,
    ExecutionSession,
)
from stepcode.core.intelligence.tutor import (
    END_MARKER,
    INPUT_MARKER,
    TutorService,
    is_error_reply,
)
from stepcode.infrastructure.compiler.client import CompileServiceClient
from stepcode.utils.logging import bind_context, clear_context

logger = logging.getLogger(__name__)

ROUNDS_EXHAUSTED_MESSAGE = "The program needed too many input rounds and was ended"


class CompiledRunner:
    """Runs C programs through the compile service or AI simulation.

    Attributes:
        session: The execution session receiving output and input requests.
    """

    language = "c"

    def __init__(
        self,
        compiler: CompileServiceClient,
        tutor: TutorService,
        settings: Optional[RunnerSettings] = None,
        session: Optional[ExecutionSession] = None,
    ) -> None:
        """Initialize the runner.

        Args:
            compiler: Compile service client.
            tutor: AI tutor used for simulation.
            settings: Runner configuration. Uses get_settings() if None.
            session: Session to run in. A new one is created if None.
        """
        self._compiler = compiler
        self._tutor = tutor
        self._settings = settings or get_settings().runner
        self.session = session or ExecutionSession()
        self._task: asyncio.Task | None = None

    @property
    def is_active(self) -> bool:
        """Check whether a program is running or awaiting input."""
        return self.session.is_active

    async def run(self, source: str, script_id: Optional[str] = None) -> ExecutionResult:
        """Run a program until it finishes, fails, or is stopped.

        The rounds run as a task so that stop() can cancel a compile or
        simulation request that is still in flight.

        Args:
            source: Program source.
            script_id: Identity of the program.

        Returns:
            ExecutionResult of the run.

        Raises:
            RunnerBusyError: If another program is still active.
        """
        session = self.session
        session.begin(script_id)
        bind_context(script_id=script_id, language=self.language)

        try:
            self._task = asyncio.ensure_future(self._rounds(source, script_id))
            await self._task
        except asyncio.CancelledError:
            if not session.is_stopped:
                session.stop()
                raise
        finally:
            self._task = None
            clear_context()

        return session.finish()

    async def _rounds(self, source: str, script_id: Optional[str]) -> None:
        session = self.session
        inputs: list[str] = []
        shown = ""

        for round_number in range(1, self._settings.max_simulation_rounds + 1):
            compiled = await self._compiler.execute(source, inputs, language=self.language)
            if session.is_stopped:
                return

            if compiled.success:
                self._show(compiled.stdout, shown)
                session.write(compiled.stderr, ChunkKind.STDERR)
                return

            logger.info(
                "Simulating program: script=%s, round=%d, reason=%s",
                script_id,
                round_number,
                compiled.error,
            )
            transcript = await self._tutor.simulate_program(source, inputs)
            if session.is_stopped:
                return

            if is_error_reply(transcript):
                session.fail(transcript)
                return

            if INPUT_MARKER not in transcript:
                self._show(transcript.split(END_MARKER, 1)[0], shown)
                return

            shown = self._show(transcript.split(INPUT_MARKER, 1)[0], shown)
            value = await session.request_input()
            if session.is_stopped:
                return
            inputs.append(value)

        session.fail(ROUNDS_EXHAUSTED_MESSAGE)

    def provide_input(self, value: str) -> bool:
        """Supply the next input line to a program waiting for it."""
        return self.session.provide_input(value)

    def stop(self) -> bool:
        """Stop the program, cancelling any request still in flight."""
        stopped = self.session.stop()
        if stopped and self._task is not None and not self._task.done():
            self._task.cancel()
        return stopped

    async def close(self) -> None:
        """Stop any active program and close the compile service client."""
        self.stop()
        await self._compiler.close()

    def _show(self, transcript: str, shown: str) -> str:
        """Write the part of a cumulative transcript not shown yet.

        Each round re-runs the program from the start, so the transcript
        repeats what earlier rounds already displayed.

        Returns:
            The transcript, as the new shown prefix.
        """
        if transcript.startswith(shown):
            self.session.write(transcript[len(shown):])
        else:
            self.session.write(transcript)
        return transcript
