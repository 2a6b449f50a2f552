# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Intelligence module for AI-powered operations.

This module provides:
- LLM completions via LiteLLM
- The AI tutor: context-aware answers and terminal simulation of programs
  that cannot be compiled

Example:
    >>> from stepcode.core.intelligence import TutorService
    >>> tutor = TutorService()
    >>> answer = await tutor.complete("What is a variable?")
"""

from stepcode.core.intelligence.llm import LLMClient, LLMError, LLMResponse, Message
from stepcode.core.intelligence.tutor import (
    CONNECTED_KEY_REQUIRED,
    EMPTY_ANSWER_MESSAGE,
    END_MARKER,
    INPUT_MARKER,
    INVALID_KEY_ERROR,
    SERVICE_ERROR_MESSAGE,
    TutorService,
    is_error_reply,
)

__all__ = [
    "CONNECTED_KEY_REQUIRED",
    "EMPTY_ANSWER_MESSAGE",
    "END_MARKER",
    "INPUT_MARKER",
    "INVALID_KEY_ERROR",
    "LLMClient",
    "LLMError",
    "LLMResponse",
    "Message",
    "SERVICE_ERROR_MESSAGE",
    "TutorService",
    "is_error_reply",
]
