# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Interactive Python script runner.

Runs learner scripts inside the application's event loop. Scripts are first
rewritten by transform_source() so that input() suspends on the session
instead of blocking; the rewritten code is executed as an asyncio task with
top-level await enabled.

Each run imports its own ``sys`` module whose ``stdout`` and ``stderr``
write into the session buffer as output happens, so print() and
``sys.stdout.write()`` both land there and the server's streams are never
touched. exit(), quit() and sys.exit() end the run normally; a non-zero exit
code is reported as an error.

If a script cannot be rewritten, it runs untransformed and input() raises a
runtime error that tells the learner why.

Example:
    >>> runner = PythonRunner()
    >>> task = asyncio.create_task(runner.run('n = input("n? ")\\nprint(int(n) * 2)'))
    >>> ...  # session.awaiting_input becomes True
    >>> runner.provide_input("21")
    >>> result = await task
    >>> result.output
    'n? 21\\n42\\n'
"""

import asyncio
import builtins
import inspect
import io
import linecache
import logging
import sys
import traceback
import types
from typing import Any, Optional

from stepcode.core.config.settings import RunnerSettings, get_settings
from stepcode.core.execution.session import (
    ChunkKind,
    ExecutionError,
    ExecutionResult,
    ExecutionSession,
)
from stepcode.core.execution.transform import (
    INPUT_BRIDGE,
    TransformError,
    transform_source,
)
from stepcode.utils.logging import bind_context, clear_context

logger = logging.getLogger(__name__)

INPUT_UNAVAILABLE_MESSAGE = (
    "input() is not available in this program because it could not be "
    "prepared for interactive input"
)


def _unavailable_input(prompt: object = "") -> str:
    raise RuntimeError(INPUT_UNAVAILABLE_MESSAGE)


def _exit(code: object = None) -> None:
    # Replaces the site exit()/quit(), which close the process stdin
    raise SystemExit(code)


class SessionStream(io.TextIOBase):
    """Writable text stream that appends to an execution session.

    Attributes:
        kind: Chunk kind given to every write.
    """

    def __init__(self, session: ExecutionSession, kind: ChunkKind) -> None:
        super().__init__()
        self._session = session
        self.kind = kind

    @property
    def encoding(self) -> str:
        return "utf-8"

    def writable(self) -> bool:
        return True

    def write(self, text: str) -> int:
        if not isinstance(text, str):
            raise TypeError(f"write() argument must be str, not {type(text).__name__}")
        self._session.write(text, self.kind)
        return len(text)


class ScriptSys(types.ModuleType):
    """The ``sys`` module as seen by one learner script.

    Standard streams belong to the run; every other attribute is read from
    the real ``sys`` module. Assignments stay local to the script.
    """

    def __init__(self, stdout: SessionStream, stderr: SessionStream) -> None:
        super().__init__("sys", sys.__doc__)
        self.stdout = self.__stdout__ = stdout
        self.stderr = self.__stderr__ = stderr
        self.stdin = self.__stdin__ = io.StringIO()

    def __getattr__(self, name: str) -> Any:
        return getattr(sys, name)


class PythonRunner:
    """Runs Python scripts with suspendable input.

    One runner owns one ExecutionSession; only one script runs at a time.

    Attributes:
        session: The execution session receiving output and input requests.
    """

    language = "python"

    def __init__(
        self,
        settings: Optional[RunnerSettings] = None,
        session: Optional[ExecutionSession] = None,
    ) -> None:
        """Initialize the runner.

        Args:
            settings: Runner configuration. Uses get_settings() if None.
            session: Session to run in. A new one is created if None.
        """
        self._settings = settings or get_settings().runner
        self._filename = f"<{self._settings.filename}>"
        self.session = session or ExecutionSession()
        self._task: asyncio.Task | None = None
        self._builtins: dict[str, Any] | None = dict(vars(builtins))

        logger.info("PythonRunner initialized: filename=%s", self._filename)

    @property
    def is_active(self) -> bool:
        """Check whether a script is running or awaiting input."""
        return self.session.is_active

    @property
    def filename(self) -> str:
        """Get the filename used in tracebacks."""
        return self._filename

    async def run(self, source: str, script_id: Optional[str] = None) -> ExecutionResult:
        """Run a script to completion, error, exit, or cancellation.

        Args:
            source: Learner script.
            script_id: Identity of the script, e.g. a problem id.

        Returns:
            ExecutionResult of the run.

        Raises:
            RunnerBusyError: If another script is still active.
            ExecutionError: If the runner was disposed.
        """
        if self._builtins is None:
            raise ExecutionError("Runner has been disposed")

        session = self.session
        session.begin(script_id)
        bind_context(script_id=script_id, language=self.language)

        try:
            try:
                transformed = transform_source(source, self._filename)
                code = transformed.code
                session.transformed = transformed.changed
            except TransformError as e:
                logger.warning(
                    "Running untransformed: script=%s, reason=%s", script_id, str(e)
                )
                code = None

            self._register_source(source)

            try:
                if code is None:
                    code = compile(source, self._filename, "exec")
                namespace = self._new_namespace()
                self._task = asyncio.ensure_future(self._execute(code, namespace))
                await self._task
            except asyncio.CancelledError:
                if not session.is_stopped:
                    session.stop()
                    raise
            except Exception as e:
                session.fail(self._format_error(e))
            finally:
                self._task = None

            result = session.finish()
            logger.debug(
                "Script finished: script=%s, stopped=%s, error_line=%s",
                script_id,
                result.stopped,
                result.error_line,
            )
            return result
        finally:
            clear_context()

    def provide_input(self, value: str) -> bool:
        """Resume a script suspended on input().

        Args:
            value: The line entered by the learner.

        Returns:
            True if a request was pending.
        """
        return self.session.provide_input(value)

    def stop(self) -> bool:
        """Cancel the running script.

        Returns:
            True if a script was active and has been stopped.
        """
        stopped = self.session.stop()
        if stopped and self._task is not None and not self._task.done():
            self._task.cancel()
        return stopped

    async def close(self) -> None:
        """Stop any active script and release the runner."""
        self.stop()
        self._builtins = None
        linecache.cache.pop(self._filename, None)

    async def _execute(self, code: types.CodeType, namespace: dict[str, Any]) -> None:
        function = types.FunctionType(code, namespace)
        try:
            result = function()
            if inspect.iscoroutine(result):
                await result
        except SystemExit as e:
            # Must not leave the task: asyncio re-raises it out of the loop
            self._exited(e.code)

    def _exited(self, code: object) -> None:
        if code is None or code == 0:
            logger.debug("Script exited: script=%s", self.session.script_id)
            return
        self.session.fail(f"SystemExit: {code}")

    def _new_namespace(self) -> dict[str, Any]:
        script_sys = ScriptSys(
            SessionStream(self.session, ChunkKind.STDOUT),
            SessionStream(self.session, ChunkKind.STDERR),
        )

        def script_print(
            *values: object,
            sep: Optional[str] = " ",
            end: Optional[str] = "\n",
            file: Any = None,
            flush: bool = False,
        ) -> None:
            if file is None:
                file = script_sys.stdout
            if not isinstance(file, SessionStream):
                print(*values, sep=sep, end=end, file=file, flush=flush)
                return
            sep = " " if sep is None else sep
            end = "\n" if end is None else end
            file.write(sep.join(str(value) for value in values) + end)

        def script_import(
            name: str,
            globals: Optional[dict[str, Any]] = None,
            locals: Optional[dict[str, Any]] = None,
            fromlist: tuple[str, ...] = (),
            level: int = 0,
        ) -> types.ModuleType:
            module = builtins.__import__(name, globals, locals, fromlist, level)
            if name == "sys" and level == 0:
                return script_sys
            return module

        script_builtins = dict(self._builtins or {})
        script_builtins["print"] = script_print
        script_builtins["__import__"] = script_import
        script_builtins["input"] = _unavailable_input
        script_builtins["exit"] = _exit
        script_builtins["quit"] = _exit
        return {
            "__name__": "__main__",
            "__builtins__": script_builtins,
            INPUT_BRIDGE: self._request_input,
        }

    async def _request_input(self, prompt: object = "") -> str:
        return await self.session.request_input(str(prompt))

    def _register_source(self, source: str) -> None:
        # Lets tracebacks show the learner's source lines
        linecache.cache[self._filename] = (
            len(source),
            None,
            source.splitlines(keepends=True),
            self._filename,
        )

    def _format_error(self, error: BaseException) -> str:
        """Format an exception showing only frames from the learner's script."""
        exception = traceback.TracebackException.from_exception(error)
        exception.stack = traceback.StackSummary.from_list(
            [frame for frame in exception.stack if frame.filename == self._filename]
        )
        return "".join(exception.format(chain=False)).rstrip()
