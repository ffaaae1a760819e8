"""AI writing-prompt helper.

Suggests what to write next based on the user's most recent entries. With
no entries to draw on it picks one of a few built-in prompts instead of
calling the model.
"""

from __future__ import annotations

import random
from collections.abc import Iterable
from dataclasses import dataclass

from loguru import logger

from ..core.llm import LLMClient
from .models import DiaryEntry
from .view import filter_entries

GENERIC_PROMPTS = (
    "What's on your mind today?",
    "Describe a small moment of joy you experienced recently.",
    "What is a goal you're working towards?",
    "Write about a challenge you're currently facing.",
    "What are you grateful for right now?",
)

FAILURE_MESSAGE = "Failed to generate writing prompt."

SYSTEM_PROMPT = (
    "You are a helpful assistant designed to generate writing prompts for a diary. "
    "You will take into account the user's past entries and generate a writing prompt "
    "that is relevant to their experiences. Reply with the prompt only."
)

ENTRY_SEPARATOR = "\n---\n"


@dataclass
class PromptResult:
    """Either a suggested ``prompt`` or an ``error`` message."""

    prompt: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.prompt is not None


def build_prompt_context(entries: Iterable[DiaryEntry], limit: int = 5) -> str:
    """Render the *limit* most recent entries as model context."""
    recent = filter_entries(entries)[:limit]
    return ENTRY_SEPARATOR.join(f"Title: {entry.title}\n{entry.content}" for entry in recent)


class WritingPromptGenerator:
    """Generate a diary writing prompt.

    Args:
        client: LLM client; one with default settings is created on first
            use when omitted.
        rng: Random source for the built-in prompts.
    """

    def __init__(self, client: LLMClient | None = None, rng: random.Random | None = None):
        self._client = client
        self._rng = rng or random.Random()

    @property
    def client(self) -> LLMClient:
        if self._client is None:
            self._client = LLMClient()
        return self._client

    async def generate(self, past_entries: str) -> PromptResult:
        """Return a prompt for *past_entries* (see :func:`build_prompt_context`).

        Never raises: model failures come back as ``PromptResult.error``.
        """
        if not past_entries or not past_entries.strip():
            return PromptResult(prompt=self._rng.choice(GENERIC_PROMPTS))

        try:
            text = await self.client.acomplete_text(
                f"Past Entries: {past_entries}\n\nWriting Prompt:",
                system_prompt=SYSTEM_PROMPT,
            )
        except Exception as e:
            logger.error(f"Writing prompt generation failed ({type(e).__name__}): {e}")
            return PromptResult(error=FAILURE_MESSAGE)

        if not text:
            logger.warning("Model returned an empty writing prompt")
            return PromptResult(error=FAILURE_MESSAGE)
        return PromptResult(prompt=text)
