# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the interactive Python runner."""

import asyncio
import subprocess
import sys

import pytest

from stepcode.core.config.settings import RunnerSettings
from stepcode.core.execution.python_runner import INPUT_UNAVAILABLE_MESSAGE, PythonRunner
from stepcode.core.execution.session import (
    ERROR_MARKER,
    STOPPED_MARKER,
    ChunkKind,
    ExecutionError,
    RunnerBusyError,
)


async def wait_for_input(runner: PythonRunner) -> None:
    """Yield to the loop until the script asks for input."""
    for _ in range(100):
        if runner.session.awaiting_input:
            return
        await asyncio.sleep(0)
    raise AssertionError("script never asked for input")


async def run_with_inputs(runner: PythonRunner, source: str, values: list[str]):
    """Run a script, answering each input request with the next value."""
    task = asyncio.ensure_future(runner.run(source))
    for value in values:
        await wait_for_input(runner)
        runner.provide_input(value)
    return await task


def run_reference(source: str, values: list[str]) -> subprocess.CompletedProcess:
    """Run a script in a real interpreter with the values on stdin."""
    return subprocess.run(
        [sys.executable, "-c", source],
        input="".join(f"{value}\n" for value in values),
        capture_output=True,
        text=True,
        timeout=30,
    )


@pytest.fixture
def runner() -> PythonRunner:
    """Create a runner with default settings."""
    return PythonRunner(settings=RunnerSettings())


class TestPythonRunner:
    """Tests for PythonRunner class."""

    @pytest.mark.asyncio
    async def test_prints_output(self, runner: PythonRunner) -> None:
        """Test that print output lands in the buffer in order."""
        result = await runner.run('print("Hello")\nprint(10)', script_id="py1")

        assert result.output == "Hello\n10\n"
        assert result.succeeded is True
        assert result.script_id == "py1"

    @pytest.mark.asyncio
    async def test_print_sep_and_end(self, runner: PythonRunner) -> None:
        """Test that sep and end are honored."""
        result = await runner.run('print(1, 2, 3, sep=",")\nprint("A", end="")\nprint("B")')

        assert result.output == "1,2,3\nAB\n"

    @pytest.mark.asyncio
    async def test_print_to_stderr(self, runner: PythonRunner) -> None:
        """Test that writes to sys.stderr are tagged as stderr."""
        result = await runner.run('import sys\nprint("oops", file=sys.stderr)')

        assert result.chunks[0].kind is ChunkKind.STDERR
        assert result.output == "oops\n"

    @pytest.mark.asyncio
    async def test_input_suspends_and_resumes(self, runner: PythonRunner) -> None:
        """Test that input() waits for the learner and echoes the value."""
        task = asyncio.ensure_future(
            runner.run('n = input("n? ")\nprint(int(n) * 2)')
        )
        await wait_for_input(runner)

        assert runner.provide_input("21") is True
        result = await task

        assert result.output == "n? 21\n42\n"
        assert result.transformed is True

    @pytest.mark.asyncio
    async def test_input_inside_nested_functions(self, runner: PythonRunner) -> None:
        """Test that input works through a chain of helper functions."""
        source = (
            "def read_number():\n"
            "    return int(input())\n"
            "\n"
            "def add_two():\n"
            "    return read_number() + read_number()\n"
            "\n"
            "print(add_two())\n"
        )
        task = asyncio.ensure_future(runner.run(source))

        await wait_for_input(runner)
        runner.provide_input("4")
        await wait_for_input(runner)
        runner.provide_input("5")
        result = await task

        assert result.output == "4\n5\n9\n"

    @pytest.mark.asyncio
    async def test_runtime_error_reports_line(self, runner: PythonRunner) -> None:
        """Test that runtime errors show the learner's line and stop the run."""
        result = await runner.run('print("start")\nx = 1 / 0\nprint("never")')

        assert result.output.startswith("start\n" + ERROR_MARKER)
        assert "ZeroDivisionError" in result.error
        assert "never" not in result.output
        assert result.error_line == 2

    @pytest.mark.asyncio
    async def test_traceback_hides_runner_frames(self, runner: PythonRunner) -> None:
        """Test that tracebacks only show frames from the script."""
        result = await runner.run("def f():\n    raise ValueError('bad')\n\nf()\n")

        assert "python_runner" not in result.error
        assert '"<main.py>", line 2' in result.error
        assert result.error_line == 2

    @pytest.mark.asyncio
    async def test_syntax_error_is_reported(self, runner: PythonRunner) -> None:
        """Test that unparsable scripts fail with a syntax error."""
        result = await runner.run("print('unclosed'\n")

        assert "SyntaxError" in result.error
        assert result.error_line == 1

    @pytest.mark.asyncio
    async def test_untransformable_script_runs_without_input(
        self, runner: PythonRunner
    ) -> None:
        """Test the fallback when input() cannot be made suspendable."""
        result = await runner.run('print("before")\nread = lambda: input()\nread()\n')

        assert result.output.startswith("before\n")
        assert INPUT_UNAVAILABLE_MESSAGE in result.error
        assert result.transformed is False

    @pytest.mark.asyncio
    async def test_stop_while_waiting_for_input(self, runner: PythonRunner) -> None:
        """Test that stopping ends the run with one stopped marker."""
        task = asyncio.ensure_future(runner.run('x = input("? ")\nprint("never")'))
        await wait_for_input(runner)

        assert runner.stop() is True
        result = await task

        assert result.stopped is True
        assert result.output == "? " + STOPPED_MARKER
        assert not runner.is_active

    @pytest.mark.asyncio
    async def test_run_while_active_raises(self, runner: PythonRunner) -> None:
        """Test that a second run is rejected while the first waits."""
        task = asyncio.ensure_future(runner.run("input()"))
        await wait_for_input(runner)

        with pytest.raises(RunnerBusyError):
            await runner.run('print("second")')

        runner.provide_input("")
        await task

    @pytest.mark.asyncio
    async def test_scripts_do_not_share_globals(self, runner: PythonRunner) -> None:
        """Test that every run gets a fresh namespace."""
        await runner.run("secret = 1")
        result = await runner.run("print(secret)")

        assert "NameError" in result.error

    @pytest.mark.asyncio
    async def test_run_after_close_raises(self, runner: PythonRunner) -> None:
        """Test that a disposed runner rejects new runs."""
        await runner.close()

        with pytest.raises(ExecutionError):
            await runner.run('print("x")')


class TestStandardStreams:
    """Tests for stream capture and program exit."""

    @pytest.mark.asyncio
    async def test_sys_stream_writes_are_captured(
        self, runner: PythonRunner, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test that direct stream writes land in the buffer, not the process."""
        result = await runner.run(
            'import sys\nsys.stdout.write("Hello\\n")\nsys.stderr.write("E\\n")'
        )

        assert result.output == "Hello\nE\n"
        assert [chunk.kind for chunk in result.chunks] == [ChunkKind.STDOUT, ChunkKind.STDERR]
        assert "Hello" not in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_stream_imported_by_name(self, runner: PythonRunner) -> None:
        """Test that from-imports of the streams are captured too."""
        result = await runner.run(
            'from sys import stdout\nstdout.write("A")\nprint("B", file=stdout)'
        )

        assert result.output == "AB\n"

    @pytest.mark.asyncio
    async def test_other_sys_attributes_are_real(self, runner: PythonRunner) -> None:
        """Test that the script's sys module still exposes the interpreter."""
        result = await runner.run("import sys\nprint(sys.version_info[0])")

        assert result.output == f"{sys.version_info[0]}\n"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exit_call",
        ["import sys\nsys.exit()", "import sys\nsys.exit(0)", "exit()", "quit()"],
    )
    async def test_exit_ends_run_normally(self, runner: PythonRunner, exit_call: str) -> None:
        """Test that exiting stops the script without an error."""
        result = await runner.run(f'print("bye")\n{exit_call}\nprint("never")')

        assert result.succeeded is True
        assert result.output == "bye\n"
        assert not runner.is_active

    @pytest.mark.asyncio
    async def test_exit_with_code_is_an_error(self, runner: PythonRunner) -> None:
        """Test that a non-zero exit code is reported."""
        result = await runner.run("import sys\nsys.exit(3)")

        assert result.error == "SystemExit: 3"
        assert result.output == ERROR_MARKER + "SystemExit: 3\n"

    @pytest.mark.asyncio
    async def test_exit_after_input(self, runner: PythonRunner) -> None:
        """Test exiting from a function of a transformed script."""
        source = (
            "import sys\n"
            "def check():\n"
            "    if input() == 'q':\n"
            "        sys.exit('quit requested')\n"
            "check()\n"
            "print('never')\n"
        )

        result = await run_with_inputs(runner, source, ["q"])

        assert result.transformed is True
        assert result.error == "SystemExit: quit requested"
        assert "never" not in result.output

    @pytest.mark.asyncio
    async def test_runner_is_usable_after_exit(self, runner: PythonRunner) -> None:
        """Test that the next run works after a script exited."""
        await runner.run("exit(1)")

        result = await runner.run('print("again")')

        assert result.output == "again\n"

    @pytest.mark.asyncio
    async def test_input_in_constructor_falls_back(self, runner: PythonRunner) -> None:
        """Test that input() in __init__ reports why it is unavailable."""
        source = "class Box:\n    def __init__(self):\n        self.n = input()\n\nBox()\n"

        result = await runner.run(source)

        assert result.transformed is False
        assert INPUT_UNAVAILABLE_MESSAGE in result.error
        assert result.error_line == 3


class TestReferenceInterpreter:
    """Tests comparing runs with a real interpreter reading stdin."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "source,values",
        [
            ('n = input("n? ")\nprint(int(n) * 2)', ["21"]),
            (
                "def read_number(prompt):\n"
                "    return int(input(prompt))\n"
                "\n"
                "def total():\n"
                "    return read_number('x: ') + read_number('y: ')\n"
                "\n"
                "print(f'sum={total()}')\n",
                ["4", "5"],
            ),
            (
                "names = []\n"
                "while True:\n"
                "    name = input('name: ')\n"
                "    if not name:\n"
                "        break\n"
                "    names.append(name.upper())\n"
                "print(', '.join(names), end='!\\n')\n",
                ["ada", "alan", ""],
            ),
            (
                "class Counter:\n"
                "    def ask(self):\n"
                "        return int(input())\n"
                "\n"
                "c = Counter()\n"
                "for i in range(c.ask()):\n"
                "    print(i, end=' ')\n"
                "print()\n",
                ["3"],
            ),
        ],
    )
    async def test_output_matches_interpreter(
        self, runner: PythonRunner, source: str, values: list[str]
    ) -> None:
        """Test that program output equals a real run fed the same lines."""
        result = await run_with_inputs(runner, source, values)
        reference = run_reference(source, values)

        shown = "".join(
            chunk.text for chunk in result.chunks if chunk.kind is not ChunkKind.ECHO
        )
        assert result.succeeded is True
        assert result.transformed is True
        assert shown == reference.stdout

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "source",
        [
            'print("Hello")\nprint(10)',
            'print(1, 2, sep="-", end=".")\nprint()\nprint(*"abc")',
            "import sys\nsys.stdout.write('raw')\nprint(' line')\nsys.stderr.write('warn\\n')",
            "def f(n):\n    return 1 if n < 2 else n * f(n - 1)\n\nprint([f(i) for i in range(6)])",
        ],
    )
    async def test_script_without_input_matches_interpreter(
        self, runner: PythonRunner, source: str
    ) -> None:
        """Test that scripts without input run exactly as written."""
        result = await runner.run(source)
        reference = run_reference(source, [])

        stdout = "".join(c.text for c in result.chunks if c.kind is ChunkKind.STDOUT)
        stderr = "".join(c.text for c in result.chunks if c.kind is ChunkKind.STDERR)
        assert result.transformed is False
        assert stdout == reference.stdout
        assert stderr == reference.stderr
