# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the compile service client."""

import json

import httpx
import pytest

from stepcode.core.config.settings import CompilerSettings
from stepcode.infrastructure.compiler.client import COMPILE_PATH, CompileServiceClient


def make_client(handler, enabled: bool = True) -> CompileServiceClient:
    """Build a client whose requests go to a handler function."""
    settings = CompilerSettings(enabled=enabled, base_url="http://compiler.test")
    http = httpx.AsyncClient(
        base_url=settings.base_url, transport=httpx.MockTransport(handler)
    )
    return CompileServiceClient(settings=settings, client=http)


class TestCompileServiceClient:
    """Tests for CompileServiceClient class."""

    @pytest.mark.asyncio
    async def test_successful_run(self) -> None:
        """Test the request body and a successful result."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"stdout": "42\n", "stderr": ""})

        client = make_client(handler)
        result = await client.execute("int main(void) {}", ["41"])
        await client.close()

        assert result.success is True
        assert result.stdout == "42\n"
        assert seen["path"] == COMPILE_PATH
        assert seen["body"] == {"language": "c", "code": "int main(void) {}", "inputs": ["41"]}

    @pytest.mark.asyncio
    async def test_disabled_service_is_not_called(self) -> None:
        """Test that a disabled service fails without a request."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        result = await make_client(handler, enabled=False).execute("x", [])

        assert result.success is False
        assert result.error == "Compile service disabled"

    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        """Test that error statuses become failed results."""
        result = await make_client(lambda request: httpx.Response(503)).execute("x", [])

        assert result.success is False
        assert result.error == "HTTP 503"

    @pytest.mark.asyncio
    async def test_network_error(self) -> None:
        """Test that connection failures become failed results."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        result = await make_client(handler).execute("x", [])

        assert result.success is False
        assert "refused" in result.error

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        """Test that unparsable bodies become failed results."""
        result = await make_client(
            lambda request: httpx.Response(200, text="<html>")
        ).execute("x", [])

        assert result.success is False
        assert result.error == "Invalid response"

    @pytest.mark.asyncio
    async def test_payload_error_field(self) -> None:
        """Test that a reported service error is a failure."""
        result = await make_client(
            lambda request: httpx.Response(200, json={"stdout": "", "error": "sandbox busy"})
        ).execute("x", [])

        assert result.success is False
        assert result.error == "sandbox busy"
