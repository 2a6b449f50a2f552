# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""AI tutor service.

The tutor answers learner questions with the on-screen context (current
stage, lesson, page, problem) attached to the system prompt, and simulates
terminal runs of compiled-language programs when the compile service is
unreachable.

complete() never raises for provider problems. Callers detect failures by
comparing the returned text with the sentinel replies:

- CONNECTED_KEY_REQUIRED: no API key is configured.
- INVALID_KEY_ERROR: the provider rejected the configured key.
- SERVICE_ERROR_MESSAGE: any other failure.

Example:
    >>> tutor = TutorService()
    >>> context = tutor.build_context(stage="quiz", lesson_title="Variables")
    >>> answer = await tutor.complete("Why is x still 3?", context)
    >>> if is_error_reply(answer):
    ...     show_key_dialog()
"""

import logging
from typing import Optional

from stepcode.core.intelligence.llm.client import LLMClient, LLMError, Message

logger = logging.getLogger(__name__)

CONNECTED_KEY_REQUIRED = "CONNECTED_KEY_REQUIRED"
INVALID_KEY_ERROR = "INVALID_KEY_ERROR"
SERVICE_ERROR_MESSAGE = (
    "The AI tutor could not be reached. Please try again in a moment."
)
EMPTY_ANSWER_MESSAGE = "The AI tutor could not produce an answer."

INPUT_MARKER = "[[WAITING_FOR_INPUT]]"
END_MARKER = "[[PROGRAM_FINISHED]]"

_ERROR_REPLIES = frozenset({CONNECTED_KEY_REQUIRED, INVALID_KEY_ERROR, SERVICE_ERROR_MESSAGE})

TUTOR_SYSTEM_PROMPT = """You are the dedicated AI tutor of StepCode, a coding education platform.
You are given the context of the screen the learner is currently looking at (code, problem, etc.).

[Rules]
1. Answer the learner's question first, clearly and kindly.
2. Use the screen content only as grounds for your answer; do not recite it.
3. Use Markdown to keep the answer readable.
4. Explain coding principles with analogies, as if drawing them.

[Current screen context]
{context}"""

SIMULATION_SYSTEM_PROMPT = f"""You are a terminal running a {{language}} program.
Print exactly what the program writes to the terminal and nothing else: no
explanations, no Markdown fences.

The learner has already typed these input lines, in order:
{{inputs}}

Each input line is consumed by the program as it reads input. Do not echo the
input lines themselves. If the program needs more input than has been typed,
print the output up to that point followed by {INPUT_MARKER} and stop. When the
program ends, print {END_MARKER} on its own line. If the program does not
compile, print the compiler diagnostics followed by {END_MARKER}."""


def is_error_reply(text: str) -> bool:
    """Check whether a tutor reply is one of the sentinel error replies."""
    return text in _ERROR_REPLIES


class TutorService:
    """AI tutor built on the LLM client.

    Attributes:
        llm: The underlying LLM client.
    """

    def __init__(self, llm: Optional[LLMClient] = None) -> None:
        """Initialize the tutor.

        Args:
            llm: LLM client. A default client is created if None.
        """
        self.llm = llm or LLMClient()

    @staticmethod
    def build_context(
        stage: Optional[str] = None,
        lesson_title: Optional[str] = None,
        page_title: Optional[str] = None,
        page_content: Optional[str] = None,
        code: Optional[str] = None,
        problem: Optional[str] = None,
    ) -> str:
        """Format what the learner is looking at for the tutor prompt.

        Args:
            stage: Current view or lesson stage.
            lesson_title: Title of the open lesson.
            page_title: Title of the open concept page.
            page_content: Body of the open concept page.
            code: Code visible in the editor or example.
            problem: Question text of the open problem.

        Returns:
            Context text; empty when nothing is given.
        """
        sections = [
            ("Stage", stage),
            ("Lesson", lesson_title),
            ("Page", page_title),
            ("Content", page_content),
            ("Code", code),
            ("Problem", problem),
        ]
        return "\n".join(f"{label}: {value}" for label, value in sections if value)

    async def complete(
        self,
        prompt: str,
        context: Optional[str] = None,
        history: Optional[list[Message]] = None,
    ) -> str:
        """Answer a learner question.

        Args:
            prompt: The learner's question.
            context: Screen context from build_context().
            history: Earlier turns of the conversation.

        Returns:
            The answer, or one of the sentinel error replies.
        """
        return await self._ask(
            prompt,
            TUTOR_SYSTEM_PROMPT.format(context=context or "No information"),
            history=history,
        )

    async def simulate_program(
        self,
        code: str,
        inputs: list[str],
        language: str = "C",
    ) -> str:
        """Ask the model to simulate a terminal run of a program.

        Args:
            code: Program source.
            inputs: Input lines typed so far.
            language: Display name of the program's language.

        Returns:
            Simulated transcript using INPUT_MARKER/END_MARKER, or one of the
            sentinel error replies.
        """
        typed = "\n".join(f"{index}. {value}" for index, value in enumerate(inputs, 1))
        system_prompt = SIMULATION_SYSTEM_PROMPT.format(
            language=language, inputs=typed or "(none)"
        )
        return await self._ask(
            f"Simulate this program:\n{code}",
            system_prompt,
            temperature=0.0,
        )

    async def _ask(
        self,
        prompt: str,
        system_prompt: str,
        history: Optional[list[Message]] = None,
        temperature: Optional[float] = None,
    ) -> str:
        if not self.llm.is_configured:
            return CONNECTED_KEY_REQUIRED

        try:
            response = await self.llm.complete(
                prompt=prompt,
                system_prompt=system_prompt,
                messages=history,
                temperature=temperature,
            )
        except LLMError as e:
            if e.is_authentication_error:
                return INVALID_KEY_ERROR
            logger.error("Tutor request failed: %s", e.message)
            return SERVICE_ERROR_MESSAGE

        return response.content or EMPTY_ANSWER_MESSAGE
