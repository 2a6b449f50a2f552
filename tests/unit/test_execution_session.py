# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the execution session."""

import asyncio

import pytest

from stepcode.core.execution.session import (
    ERROR_MARKER,
    STOPPED_MARKER,
    ChunkKind,
    ExecutionSession,
    ExecutionState,
    InputAlreadyPendingError,
    RunnerBusyError,
    extract_error_line,
)


class TestExtractErrorLine:
    """Tests for extract_error_line function."""

    def test_returns_last_line_mentioned(self) -> None:
        """Test that the innermost frame's line wins."""
        text = 'File "<main.py>", line 3, in <module>\nFile "<main.py>", line 7, in f'

        assert extract_error_line(text) == 7

    def test_returns_none_without_line(self) -> None:
        """Test that texts without a line number give None."""
        assert extract_error_line("NameError: name 'x' is not defined") is None


class TestExecutionSession:
    """Tests for ExecutionSession class."""

    def test_begin_clears_previous_output(self) -> None:
        """Test that a new run starts with an empty buffer."""
        session = ExecutionSession()
        session.begin("a")
        session.write("old\n")
        session.finish()

        session.begin("b")

        assert session.text == ""
        assert session.state is ExecutionState.RUNNING

    def test_begin_while_active_raises(self) -> None:
        """Test that only one run may be active."""
        session = ExecutionSession()
        session.begin("a")

        with pytest.raises(RunnerBusyError):
            session.begin("b")

    def test_fail_appends_marker_and_line(self) -> None:
        """Test that errors are written with the error marker."""
        session = ExecutionSession()
        session.begin()

        session.fail('File "<main.py>", line 2\nZeroDivisionError: division by zero')
        result = session.finish()

        assert result.output.startswith(ERROR_MARKER)
        assert result.error_line == 2
        assert result.succeeded is False

    def test_on_output_receives_chunks(self) -> None:
        """Test that the output callback sees every chunk."""
        seen = []
        session = ExecutionSession(on_output=seen.append)
        session.begin()

        session.write("Hi\n")

        assert [chunk.text for chunk in seen] == ["Hi\n"]

    @pytest.mark.asyncio
    async def test_input_is_echoed_after_prompt(self) -> None:
        """Test that supplied input is echoed right after the prompt."""
        session = ExecutionSession()
        session.begin()
        session.write("before\n")

        request = asyncio.ensure_future(session.request_input("Name? "))
        await asyncio.sleep(0)
        assert session.awaiting_input

        assert session.provide_input("Jini") is True
        value = await request

        assert value == "Jini"
        assert session.text == "before\nName? Jini\n"
        assert session.chunks[-1].kind is ChunkKind.ECHO
        assert session.state is ExecutionState.RUNNING

    @pytest.mark.asyncio
    async def test_second_pending_request_raises(self) -> None:
        """Test that at most one input request is pending."""
        session = ExecutionSession()
        session.begin()
        request = asyncio.ensure_future(session.request_input())
        await asyncio.sleep(0)

        with pytest.raises(InputAlreadyPendingError):
            await session.request_input()

        session.provide_input("x")
        await request

    def test_provide_input_without_request_is_ignored(self) -> None:
        """Test that input with nothing waiting returns False."""
        session = ExecutionSession()
        session.begin()

        assert session.provide_input("late") is False
        assert session.text == ""

    @pytest.mark.asyncio
    async def test_stop_resolves_pending_input(self) -> None:
        """Test that stopping resolves the pending request with ''."""
        session = ExecutionSession()
        session.begin()
        request = asyncio.ensure_future(session.request_input("? "))
        await asyncio.sleep(0)

        assert session.stop() is True
        value = await request

        assert value == ""
        assert session.text.endswith(STOPPED_MARKER)

    def test_stop_appends_marker_once(self) -> None:
        """Test that stopping twice writes one marker."""
        session = ExecutionSession()
        session.begin()

        session.stop()
        session.stop()

        assert session.text.count(STOPPED_MARKER) == 1

    def test_writes_after_stop_are_dropped(self) -> None:
        """Test that late output from an unwinding script is discarded."""
        session = ExecutionSession()
        session.begin()
        session.stop()

        session.write("late\n")
        session.fail("late error")
        result = session.finish()

        assert result.output == STOPPED_MARKER
        assert result.stopped is True
        assert result.error is None

    def test_reset_while_active_raises(self) -> None:
        """Test that an active session cannot be reset."""
        session = ExecutionSession()
        session.begin()

        with pytest.raises(RunnerBusyError):
            session.reset()
