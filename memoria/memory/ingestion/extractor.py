"""Candidate memory extraction.

The heuristic pass always runs over every event of the turn. On every
``llm_every_n_turns``-th turn, and only in ``heuristic_llm`` mode, a
model-assisted pass adds structured candidates; its failure degrades to
the heuristic result for that turn.
"""

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from memoria.config.models.memory import ExtractorConfig, PromptConfig
from memoria.errors import BackendError, ValidationError
from memoria.memory.ingestion.drafts import build_draft
from memoria.memory.ingestion.rules import HeuristicRule, default_rules
from memoria.memory.models import MemoryDraft, MemorySource, TranscriptEvent
from memoria.observability.logging import get_logger
from memoria.observability.metrics import DEGRADATIONS, MEMORIES_REJECTED

if TYPE_CHECKING:
    from memoria.memory.ingestion.llm_extractor import LLMExtractor

logger = get_logger(__name__)

_SENTENCE_BREAK = re.compile(r"[.!?\n]")


@dataclass
class ExtractionResult:
    """Drafts from one extraction pass, in proposal order."""

    drafts: list[MemoryDraft] = field(default_factory=list)
    rejected: int = 0
    model_pass_ran: bool = False
    degraded: list[str] = field(default_factory=list)


def split_sentences(text: str) -> list[str]:
    """Split on sentence punctuation and newlines, dropping empty pieces."""
    return [part for part in _SENTENCE_BREAK.split(text) if part.strip()]


class HeuristicExtractor:
    """Rule-based extraction over individual sentences."""

    def __init__(
        self,
        config: ExtractorConfig,
        prompt_config: PromptConfig,
        rules: Iterable[HeuristicRule] | None = None,
    ):
        self._config = config
        self._max_memory_chars = prompt_config.max_memory_chars
        self._rules = list(rules) if rules is not None else default_rules()

    def match(self, sentence: str) -> HeuristicRule | None:
        """Highest-priority rule matching the sentence, if any."""
        return next((rule for rule in self._rules if rule.matches(sentence)), None)

    def extract_text(self, text: str) -> ExtractionResult:
        result = ExtractionResult()
        for sentence in split_sentences(text):
            rule = self.match(sentence)
            if rule is None:
                continue
            try:
                draft = build_draft(
                    sentence,
                    rule.kind,
                    rule.effective_salience,
                    MemorySource.HEURISTIC,
                    min_content_chars=self._config.min_content_chars,
                    max_memory_chars=self._max_memory_chars,
                )
            except ValidationError as e:
                result.rejected += 1
                MEMORIES_REJECTED.labels(reason="validation").inc()
                logger.debug("heuristic_candidate_rejected", reason=e.args[0])
                continue
            if draft is not None:
                result.drafts.append(draft)
        return result

    def extract(self, events: Sequence[TranscriptEvent]) -> ExtractionResult:
        result = ExtractionResult()
        for event in events:
            partial = self.extract_text(event.content)
            result.drafts.extend(partial.drafts)
            result.rejected += partial.rejected
        return result


class Extractor:
    """Heuristic pass plus the periodic model-assisted pass."""

    def __init__(
        self,
        config: ExtractorConfig,
        heuristic: HeuristicExtractor,
        model: "LLMExtractor | None" = None,
    ):
        self._config = config
        self._heuristic = heuristic
        self._model = model

    def should_run_model(self, turn_counter: int) -> bool:
        return (
            self._model is not None
            and self._config.mode == "heuristic_llm"
            and turn_counter > 0
            and turn_counter % self._config.llm_every_n_turns == 0
        )

    async def extract(
        self,
        events: Sequence[TranscriptEvent],
        user_text: str,
        assistant_text: str,
        turn_counter: int,
    ) -> ExtractionResult:
        """Extract drafts for one turn.

        Heuristic drafts come first. When the model proposes content the
        heuristic pass already produced, the heuristic kind is kept and
        the disagreement is logged.
        """
        result = self._heuristic.extract(events)

        if not self.should_run_model(turn_counter):
            return result

        result.model_pass_ran = True
        try:
            model_result = await self._model.extract(user_text, assistant_text)
        except BackendError as e:
            DEGRADATIONS.labels(step="model_extraction").inc()
            result.degraded.append("model_extraction")
            logger.warning(
                "model_extraction_failed",
                turn_counter=turn_counter,
                error=str(e),
                error_type=type(e).__name__,
            )
            return result

        known = {draft.content_hash: draft for draft in result.drafts}
        for draft in model_result.drafts:
            existing = known.get(draft.content_hash)
            if existing is not None:
                if existing.kind != draft.kind:
                    logger.info(
                        "extraction_kind_conflict",
                        heuristic_kind=existing.kind.value,
                        model_kind=draft.kind.value,
                    )
                continue
            known[draft.content_hash] = draft
            result.drafts.append(draft)
        result.rejected += model_result.rejected
        return result
