"""Model-assisted memory extraction.

Asks the language model for a strict JSON array of candidate memories.
Malformed or oversized answers are discarded as a whole and never
retried; the caller falls back to the heuristic result.
"""

import asyncio
import json
from typing import Any

from memoria.config.models.memory import ExtractorConfig, PromptConfig
from memoria.config.models.providers import LLMConfig
from memoria.errors import ValidationError
from memoria.memory.ingestion.drafts import build_draft
from memoria.memory.ingestion.extractor import ExtractionResult
from memoria.memory.models import MemoryDraft, MemoryKind, MemorySource
from memoria.observability.logging import get_logger
from memoria.observability.metrics import MEMORIES_REJECTED
from memoria.providers.llm.base import (
    LLMMessage,
    LLMProvider,
    MalformedOutputError,
    ProviderTimeoutError,
)

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You extract stable memories about the user from one conversation turn. "
    "Return a strict JSON array of objects with fields: kind, content, salience. "
    "kind is one of: {kinds}. salience is a number between 0 and 1. "
    "Return at most {max_items} objects. Return [] if nothing should be stored."
)

USER_PROMPT = (
    "User message:\n{user_text}\n\n"
    "Assistant message:\n{assistant_text}\n\n"
    "Only include durable facts, preferences, constraints, decisions, goals, "
    "tool results, or code artifacts."
)


class LLMExtractor:
    """Extract candidate memories with a language model."""

    def __init__(
        self,
        llm: LLMProvider,
        config: ExtractorConfig,
        prompt_config: PromptConfig,
        llm_config: LLMConfig | None = None,
    ):
        """Initialize the extractor.

        Args:
            llm: Language-model backend
            config: Extraction limits
            prompt_config: Supplies the per-item character bound
            llm_config: Supplies the request timeout
        """
        self._llm = llm
        self._config = config
        self._max_memory_chars = prompt_config.max_memory_chars
        self._timeout = (llm_config or LLMConfig()).timeout_seconds

    async def extract(self, user_text: str, assistant_text: str) -> ExtractionResult:
        """Run one extraction pass.

        Raises:
            ProviderTimeoutError: If the model does not answer in time
            ProviderError: If the backend call fails
            MalformedOutputError: If the answer is not a valid bounded JSON array
        """
        messages = [
            LLMMessage(
                role="system",
                content=SYSTEM_PROMPT.format(
                    kinds=", ".join(kind.value for kind in MemoryKind),
                    max_items=self._config.llm_max_items,
                ),
            ),
            LLMMessage(
                role="user",
                content=USER_PROMPT.format(
                    user_text=user_text, assistant_text=assistant_text
                ),
            ),
        ]

        try:
            response = await asyncio.wait_for(
                self._llm.generate(messages, temperature=0.0),
                timeout=self._timeout,
            )
        except TimeoutError:
            raise ProviderTimeoutError(
                f"Model extraction timed out after {self._timeout}s",
                provider=self._llm.provider_name,
            ) from None

        candidates = self.parse_candidates(response.content)

        result = ExtractionResult()
        for candidate in candidates:
            try:
                draft = self._to_draft(candidate)
            except ValidationError as e:
                result.rejected += 1
                MEMORIES_REJECTED.labels(reason="validation").inc()
                logger.debug("model_candidate_rejected", reason=e.args[0])
                continue
            if draft is not None:
                result.drafts.append(draft)

        logger.debug(
            "model_extraction_complete",
            candidates=len(candidates),
            drafts=len(result.drafts),
            rejected=result.rejected,
        )
        return result

    def parse_candidates(self, text: str) -> list[dict[str, Any]]:
        """Parse and bound the model answer.

        Raises:
            MalformedOutputError: If the answer is not a JSON array of
                objects, or holds more than ``llm_max_items`` entries
        """
        body = _strip_code_fence(text)
        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            raise MalformedOutputError(
                "Model extraction output is not valid JSON",
                provider=self._llm.provider_name,
                cause=e,
            ) from e

        if not isinstance(data, list) or not all(isinstance(c, dict) for c in data):
            raise MalformedOutputError(
                "Model extraction output is not a JSON array of objects",
                provider=self._llm.provider_name,
            )
        if len(data) > self._config.llm_max_items:
            raise MalformedOutputError(
                f"Model returned {len(data)} candidates, limit is "
                f"{self._config.llm_max_items}",
                provider=self._llm.provider_name,
            )
        return data

    def _to_draft(self, candidate: dict[str, Any]) -> MemoryDraft | None:
        content = candidate.get("content")
        if not isinstance(content, str):
            raise ValidationError("Candidate content is not text")

        kind = MemoryKind.parse(str(candidate.get("kind", "")))

        raw_salience = candidate.get("salience")
        if raw_salience is None:
            salience = kind.default_salience
        elif isinstance(raw_salience, bool) or not isinstance(raw_salience, (int, float)):
            raise ValidationError(f"Candidate salience {raw_salience!r} is not a number")
        else:
            salience = float(raw_salience)

        return build_draft(
            content,
            kind,
            salience,
            MemorySource.MODEL,
            min_content_chars=self._config.min_content_chars,
            max_memory_chars=self._max_memory_chars,
        )


def _strip_code_fence(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("```"):
        stripped = stripped.split("\n", 1)[1] if "\n" in stripped else ""
        if stripped.rstrip().endswith("```"):
            stripped = stripped.rstrip()[:-3]
    return stripped.strip()
