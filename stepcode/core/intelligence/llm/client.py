# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""LLM client using LiteLLM for multi-provider support.

The tutor talks to a hosted model through LiteLLM's acompletion(). The API
key and optional endpoint are passed directly on every call rather than
through environment variables, so one process can hold several clients
configured differently (tests, per-learner keys).

Example:
    >>> from stepcode.core.intelligence.llm import LLMClient
    >>> client = LLMClient()
    >>> response = await client.complete("Explain what a for loop does")
    >>> print(response.content)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import litellm
from litellm import acompletion

from stepcode.core.config.settings import LLMSettings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Response from an LLM completion.

    Attributes:
        content: The generated text content.
        model: The model that generated the response.
        tokens_input: Number of input tokens used.
        tokens_output: Number of output tokens generated.
        finish_reason: Why generation stopped (stop, length, etc.).
        raw_response: Original response object from LiteLLM.
    """

    content: str
    model: str
    tokens_input: int = 0
    tokens_output: int = 0
    finish_reason: str = "stop"
    raw_response: Optional[object] = field(default=None, repr=False)

    @property
    def total_tokens(self) -> int:
        """Get total tokens used (input + output)."""
        return self.tokens_input + self.tokens_output


class LLMError(Exception):
    """Exception raised when LLM operation fails.

    Attributes:
        message: Error description.
        model: Model that caused the error.
        error_code: ``"authentication"`` when the provider rejected the key,
            otherwise None.
        original_error: Original exception if any.
    """

    def __init__(
        self,
        message: str,
        model: Optional[str] = None,
        error_code: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        """Initialize LLMError.

        Args:
            message: Error description.
            model: Model that caused the error.
            error_code: Error code if available.
            original_error: Original exception if any.
        """
        self.message = message
        self.model = model
        self.error_code = error_code
        self.original_error = original_error
        super().__init__(self.message)

    @property
    def is_authentication_error(self) -> bool:
        """Check whether the provider rejected the API key."""
        return self.error_code == "authentication"


@dataclass
class Message:
    """A message in a conversation.

    Attributes:
        role: Message role (system, user, assistant).
        content: Message text content.
    """

    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary format for LiteLLM."""
        return {"role": self.role, "content": self.content}


class LLMClient:
    """Client for LLM completions via LiteLLM.

    Attributes:
        model: Default model to use for completions.
        timeout: Request timeout in seconds.
        max_retries: Maximum retry attempts.

    Example:
        >>> client = LLMClient()
        >>> response = await client.complete(
        ...     prompt="What does print() return?",
        ...     temperature=0.2,
        ... )
        >>> print(response.content)
    """

    def __init__(
        self,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        llm_settings: Optional[LLMSettings] = None,
    ):
        """Initialize the LLM client.

        Args:
            model: Default model in LiteLLM format. Falls back to settings.
            timeout: Request timeout in seconds. Falls back to settings.
            max_retries: Maximum retry attempts. Falls back to settings.
            llm_settings: LLM configuration. Uses get_settings() if None.
        """
        self._settings = llm_settings or get_settings().llm
        self._model = model or self._settings.model
        self._timeout = timeout or self._settings.request_timeout
        self._max_retries = (
            max_retries if max_retries is not None else self._settings.max_retries
        )

        litellm.drop_params = True

        logger.info(
            "LLMClient initialized with model=%s, timeout=%.1fs, max_retries=%d",
            self._model,
            self._timeout,
            self._max_retries,
        )

    @property
    def model(self) -> str:
        """Get the default model."""
        return self._model

    @property
    def is_configured(self) -> bool:
        """Check whether an API key is available."""
        return self._settings.is_configured

    def _get_provider_params(self) -> dict[str, Any]:
        """Build the api_key/api_base parameters passed to acompletion()."""
        params: dict[str, Any] = {}
        if self._settings.api_key is not None:
            params["api_key"] = self._settings.api_key.get_secret_value()
        if self._settings.api_base:
            params["api_base"] = self._settings.api_base
        return params

    async def complete(
        self,
        prompt: str,
        model: Optional[str] = None,
        system_prompt: Optional[str] = None,
        messages: Optional[list[Message]] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        stop: Optional[list[str]] = None,
        **kwargs,
    ) -> LLMResponse:
        """Generate a completion for the given prompt.

        Args:
            prompt: User prompt text.
            model: Override default model for this request.
            system_prompt: Optional system prompt to set context.
            messages: Previous conversation messages (if multi-turn).
            temperature: Sampling temperature. Falls back to settings.
            max_tokens: Maximum tokens to generate. Falls back to settings.
            stop: Stop sequences to end generation.
            **kwargs: Additional LiteLLM parameters.

        Returns:
            LLMResponse with generated content and metadata.

        Raises:
            LLMError: If generation fails after retries.
            ValueError: If prompt is empty.
        """
        if not prompt or not prompt.strip():
            raise ValueError("Prompt cannot be empty")

        use_model = model or self._model

        chat_messages: list[dict[str, str]] = []
        if system_prompt:
            chat_messages.append({"role": "system", "content": system_prompt})
        if messages:
            chat_messages.extend([m.to_dict() for m in messages])
        chat_messages.append({"role": "user", "content": prompt})

        try:
            response = await acompletion(
                model=use_model,
                messages=chat_messages,
                temperature=(
                    temperature if temperature is not None else self._settings.temperature
                ),
                max_tokens=max_tokens or self._settings.max_tokens,
                stop=stop,
                timeout=self._timeout,
                num_retries=self._max_retries,
                **self._get_provider_params(),
                **kwargs,
            )

            content = response.choices[0].message.content or ""
            finish_reason = response.choices[0].finish_reason or "stop"

            usage = getattr(response, "usage", None)
            tokens_input = getattr(usage, "prompt_tokens", 0) or 0
            tokens_output = getattr(usage, "completion_tokens", 0) or 0

            logger.debug(
                "Completion generated: model=%s, tokens_in=%d, tokens_out=%d",
                use_model,
                tokens_input,
                tokens_output,
            )

            return LLMResponse(
                content=content,
                model=use_model,
                tokens_input=tokens_input,
                tokens_output=tokens_output,
                finish_reason=finish_reason,
                raw_response=response,
            )

        except litellm.AuthenticationError as e:
            logger.warning("Completion rejected: model=%s, invalid API key", use_model)
            raise LLMError(
                message=f"Authentication failed: {str(e)}",
                model=use_model,
                error_code="authentication",
                original_error=e,
            ) from e
        except Exception as e:
            logger.error(
                "Completion failed: model=%s, prompt_length=%d, error=%s",
                use_model,
                len(prompt),
                str(e),
            )
            raise LLMError(
                message=f"Completion failed: {str(e)}",
                model=use_model,
                original_error=e,
            ) from e
