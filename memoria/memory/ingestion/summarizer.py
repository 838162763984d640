"""Rolling session summary regeneration."""

import asyncio
from collections.abc import Sequence

from memoria.config.models.memory import SummaryConfig
from memoria.config.models.providers import LLMConfig
from memoria.memory.models import TranscriptEvent
from memoria.memory.normalize import truncate
from memoria.observability.logging import get_logger
from memoria.providers.llm.base import (
    LLMMessage,
    LLMProvider,
    MalformedOutputError,
    ProviderTimeoutError,
)

logger = get_logger(__name__)

SUMMARY_SYSTEM_PROMPT = """You maintain a running summary of a conversation between a user and an assistant.
Merge the previous summary with the new exchanges. Keep durable facts about the user,
open tasks and decisions; drop small talk. Answer with the summary text only,
at most {max_chars} characters."""


def format_events(events: Sequence[TranscriptEvent]) -> str:
    """Role-prefixed lines, one per event, oldest first."""
    return "\n".join(f"{event.role.label}: {event.content}" for event in events)


class Summarizer:
    """Fold new transcript events into the previous summary.

    With ``use_llm`` the language model rewrites the summary; otherwise
    the events are appended as role-prefixed lines and only the most
    recent ``max_chars`` characters are kept.
    """

    def __init__(
        self,
        llm: LLMProvider | None,
        config: SummaryConfig,
        llm_config: LLMConfig | None = None,
    ):
        self._llm = llm
        self._config = config
        self._llm_config = llm_config or LLMConfig()

    @property
    def mode(self) -> str:
        return "llm" if self._config.use_llm and self._llm is not None else "concat"

    async def summarize(
        self,
        previous: str | None,
        events: Sequence[TranscriptEvent],
    ) -> str:
        """Return the new summary text, bounded by ``max_chars``.

        Raises:
            BackendError: If the model call fails, times out, or answers
                with nothing
        """
        if self.mode == "llm":
            return await self._summarize_with_llm(previous, events)
        return self._concatenate(previous, events)

    def _concatenate(self, previous: str | None, events: Sequence[TranscriptEvent]) -> str:
        summary = previous or ""
        for event in events:
            summary += f"\n{event.role.label}: {event.content}"
        if len(summary) > self._config.max_chars:
            summary = summary[-self._config.max_chars:]
        return summary.strip()

    async def _summarize_with_llm(
        self,
        previous: str | None,
        events: Sequence[TranscriptEvent],
    ) -> str:
        user_content = (
            f"Previous summary:\n{previous or '(none)'}\n\n"
            f"New exchanges:\n{format_events(events) or '(none)'}"
        )
        messages = [
            LLMMessage(
                role="system",
                content=SUMMARY_SYSTEM_PROMPT.format(max_chars=self._config.max_chars),
            ),
            LLMMessage(role="user", content=user_content),
        ]

        timeout = self._llm_config.timeout_seconds
        try:
            response = await asyncio.wait_for(
                self._llm.generate(messages, temperature=self._llm_config.temperature),
                timeout=timeout,
            )
        except TimeoutError:
            raise ProviderTimeoutError(
                f"Summary generation timed out after {timeout}s",
                provider=self._llm.provider_name,
            ) from None

        text = response.content.strip()
        if not text:
            raise MalformedOutputError(
                "Summary generation returned no text",
                provider=self._llm.provider_name,
            )

        logger.debug(
            "summary_generated",
            events=len(events),
            chars=len(text),
        )
        return truncate(text, self._config.max_chars)
