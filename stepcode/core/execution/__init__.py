# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Interactive script execution.

Components:
- ExecutionSession: output buffer, run state, pending input request
- transform_source: rewrites input() calls into awaited suspensions
- PythonRunner: runs rewritten Python scripts as asyncio tasks
- CompiledRunner: runs C programs via the compile service or AI simulation
- RunnerHost: owns the runner of the selected language

Example:
    >>> from stepcode.core.execution import RunnerHost
    >>> host = RunnerHost()
    >>> result = await host.run('print("Hello")')
    >>> result.output
    'Hello\\n'
"""

from stepcode.core.execution.compiled_runner import CompiledRunner
from stepcode.core.execution.host import Language, RunnerHost, ScriptRunner
from stepcode.core.execution.python_runner import PythonRunner
from stepcode.core.execution.session import (
    ERROR_MARKER,
    STOPPED_MARKER,
    ChunkKind,
    ExecutionError,
    ExecutionResult,
    ExecutionSession,
    ExecutionState,
    InputAlreadyPendingError,
    OutputChunk,
    RunnerBusyError,
    extract_error_line,
)
from stepcode.core.execution.transform import (
    INPUT_BRIDGE,
    TransformError,
    TransformResult,
    transform_source,
)

__all__ = [
    "ERROR_MARKER",
    "INPUT_BRIDGE",
    "STOPPED_MARKER",
    "ChunkKind",
    "CompiledRunner",
    "ExecutionError",
    "ExecutionResult",
    "ExecutionSession",
    "ExecutionState",
    "InputAlreadyPendingError",
    "Language",
    "OutputChunk",
    "PythonRunner",
    "RunnerBusyError",
    "RunnerHost",
    "ScriptRunner",
    "TransformError",
    "TransformResult",
    "extract_error_line",
    "transform_source",
]
