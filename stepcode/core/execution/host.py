# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Runner host: owns the runner of the selected language.

The host creates runners lazily on first use and disposes of them when the
learner switches language. Only one run may be active at a time; a new run
either fails with RunnerBusyError or, with restart=True, stops the active run
and waits for it to unwind first.

Example:
    >>> host = RunnerHost(on_output=terminal.append)
    >>> result = await host.run(source, script_id="py1-code-1")
    >>> await host.select_language(Language.C)
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional, Protocol

from stepcode.core.config.settings import Settings, get_settings
from stepcode.core.execution.compiled_runner import CompiledRunner
from stepcode.core.execution.python_runner import PythonRunner
from stepcode.core.execution.session import (
    ExecutionResult,
    ExecutionSession,
    ExecutionState,
    OutputChunk,
    RunnerBusyError,
)
from stepcode.core.intelligence.tutor import TutorService
from stepcode.infrastructure.compiler.client import CompileServiceClient

logger = logging.getLogger(__name__)


class Language(str, Enum):
    """Languages the playground can run."""

    PYTHON = "python"
    C = "c"


class ScriptRunner(Protocol):
    """Interface shared by all runners."""

    session: ExecutionSession

    @property
    def is_active(self) -> bool: ...

    async def run(self, source: str, script_id: Optional[str] = None) -> ExecutionResult: ...

    def provide_input(self, value: str) -> bool: ...

    def stop(self) -> bool: ...

    async def close(self) -> None: ...


class RunnerHost:
    """Owns at most one runner, for the currently selected language."""

    def __init__(
        self,
        language: Language = Language.PYTHON,
        settings: Optional[Settings] = None,
        tutor: Optional[TutorService] = None,
        compiler: Optional[CompileServiceClient] = None,
        on_output: Optional[Callable[[OutputChunk], None]] = None,
        on_state: Optional[Callable[[ExecutionState], None]] = None,
    ) -> None:
        """Initialize the host without creating a runner.

        Args:
            language: Initially selected language.
            settings: Application settings. Uses get_settings() if None.
            tutor: AI tutor for C simulation. Created on demand if None.
            compiler: Compile service client. Created on demand if None.
            on_output: Forwarded to each runner's session.
            on_state: Forwarded to each runner's session.
        """
        self._language = Language(language)
        self._settings = settings or get_settings()
        self._tutor = tutor
        self._compiler = compiler
        self._on_output = on_output
        self._on_state = on_state
        self._runner: ScriptRunner | None = None
        self._active_run: asyncio.Future[ExecutionResult] | None = None

    @property
    def language(self) -> Language:
        """Get the selected language."""
        return self._language

    @property
    def runner(self) -> ScriptRunner:
        """Get the runner for the selected language, creating it if needed."""
        if self._runner is None:
            self._runner = self._create_runner(self._language)
        return self._runner

    @property
    def has_runner(self) -> bool:
        """Check whether a runner has been created."""
        return self._runner is not None

    @property
    def is_active(self) -> bool:
        """Check whether a run is in progress."""
        return self._runner is not None and self._runner.is_active

    async def select_language(self, language: Language | str) -> None:
        """Switch language, stopping and disposing of the current runner.

        Args:
            language: Language to select.
        """
        language = Language(language)
        if language is self._language:
            return
        await self.dispose()
        self._language = language
        logger.info("Runner language selected: %s", language.value)

    async def run(
        self,
        source: str,
        script_id: Optional[str] = None,
        restart: bool = False,
    ) -> ExecutionResult:
        """Run a script on the selected language's runner.

        Args:
            source: Script source.
            script_id: Identity of the script.
            restart: Stop an active run instead of rejecting the new one.

        Returns:
            ExecutionResult of the run.

        Raises:
            RunnerBusyError: If a run is active and restart is False.
        """
        if self.is_active:
            if not restart:
                raise RunnerBusyError("A program is already running")
            await self.stop()

        active = asyncio.ensure_future(self.runner.run(source, script_id))
        self._active_run = active
        try:
            return await active
        finally:
            if self._active_run is active:
                self._active_run = None

    def provide_input(self, value: str) -> bool:
        """Send a line of input to the waiting program."""
        if self._runner is None:
            return False
        return self._runner.provide_input(value)

    async def stop(self) -> bool:
        """Stop the active run and wait until it has unwound.

        Returns:
            True if a run was stopped.
        """
        if self._runner is None:
            return False
        stopped = self._runner.stop()
        active = self._active_run
        if active is not None and not active.done():
            await asyncio.wait([active])
        return stopped

    async def dispose(self) -> None:
        """Stop any active run and release the runner."""
        if self._runner is None:
            return
        await self.stop()
        runner, self._runner = self._runner, None
        await runner.close()
        if isinstance(runner, CompiledRunner):
            self._compiler = None
        logger.debug("Runner disposed: language=%s", self._language.value)

    def _create_runner(self, language: Language) -> ScriptRunner:
        session = ExecutionSession(on_output=self._on_output, on_state=self._on_state)
        if language is Language.PYTHON:
            return PythonRunner(settings=self._settings.runner, session=session)

        if self._compiler is None:
            self._compiler = CompileServiceClient(self._settings.compiler)
        if self._tutor is None:
            self._tutor = TutorService()
        return CompiledRunner(
            compiler=self._compiler,
            tutor=self._tutor,
            settings=self._settings.runner,
            session=session,
        )
