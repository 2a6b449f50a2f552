# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""LLM client module using LiteLLM.

Components:
- LLMClient: Main interface for completions
- LLMResponse: Completion result with token usage
- LLMError: Raised when a completion fails

Example:
    >>> from stepcode.core.intelligence.llm import LLMClient
    >>> client = LLMClient()
    >>> response = await client.complete("What is 2+2?")
    >>> print(response.content)
"""

from stepcode.core.intelligence.llm.client import (
    LLMClient,
    LLMError,
    LLMResponse,
    Message,
)

__all__ = [
    "LLMClient",
    "LLMError",
    "LLMResponse",
    "Message",
]
