# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Client for the external compile-and-run service.

The service compiles a program, feeds it the given input lines on stdin and
returns what it printed. It is optional: when it is disabled, unreachable, or
answers with anything unexpected, execute() returns an unsuccessful result
and the caller falls back to simulation. Nothing here raises for service
failures.

Request:  POST {base_url}/api/compile
          {"language": "c", "code": "...", "inputs": ["3", "4"]}
Response: {"stdout": "...", "stderr": "...", "error": null}
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from stepcode.core.config.settings import CompilerSettings, get_settings

logger = logging.getLogger(__name__)

COMPILE_PATH = "/api/compile"


@dataclass
class CompileResult:
    """Result of one compile-and-run request.

    Attributes:
        success: Whether the service ran the program. Output from a
            successful result is authoritative.
        stdout: Program standard output.
        stderr: Program standard error or compiler diagnostics.
        error: Why the request failed, when success is False.
    """

    success: bool
    stdout: str = ""
    stderr: str = ""
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str) -> "CompileResult":
        """Build an unsuccessful result."""
        return cls(success=False, error=error)


class CompileServiceClient:
    """Async HTTP client for the compile service.

    Example:
        >>> client = CompileServiceClient()
        >>> result = await client.execute(source, inputs=["5"])
        >>> if result.success:
        ...     print(result.stdout)
        >>> await client.close()
    """

    def __init__(
        self,
        settings: Optional[CompilerSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Compile service configuration. Uses get_settings() if None.
            client: Preconfigured HTTP client, mainly for tests.
        """
        self._settings = settings or get_settings().compiler
        self._client = client or httpx.AsyncClient(
            base_url=self._settings.base_url,
            timeout=self._settings.timeout,
        )

    @property
    def enabled(self) -> bool:
        """Check whether the service should be called."""
        return self._settings.enabled

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def execute(
        self,
        code: str,
        inputs: list[str],
        language: str = "c",
    ) -> CompileResult:
        """Compile and run a program with the given stdin lines.

        Args:
            code: Program source.
            inputs: Input lines, fed to stdin in order.
            language: Source language.

        Returns:
            CompileResult; success is False on any service failure.
        """
        if not self.enabled:
            return CompileResult.failed("Compile service disabled")

        try:
            response = await self._client.post(
                COMPILE_PATH,
                json={"language": language, "code": code, "inputs": list(inputs)},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Compile service returned %d: %s",
                e.response.status_code,
                e.response.text[:200],
            )
            return CompileResult.failed(f"HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.warning("Compile service unreachable: %s", str(e))
            return CompileResult.failed(f"Unreachable: {str(e)}")
        except ValueError as e:
            logger.warning("Compile service sent invalid JSON: %s", str(e))
            return CompileResult.failed("Invalid response")

        if not isinstance(payload, dict) or not isinstance(payload.get("stdout"), str):
            return CompileResult.failed("Invalid response")
        if payload.get("error"):
            return CompileResult.failed(str(payload["error"]))

        stderr = payload.get("stderr")
        return CompileResult(
            success=True,
            stdout=payload["stdout"],
            stderr=stderr if isinstance(stderr, str) else "",
        )
