"""Memory engine: the write path (record_turn) and read path (prepare_context).

Per-session state lives only in the stores: the turn counter is the
number of turns in the transcript, and the summary's presence is the
only other state. The engine is shared across sessions and takes no
per-session lock; callers keep at most one turn in flight per session.

Degradation policy:
- model extraction failure: heuristic drafts only
- embedding failure or timeout: the turn's candidates are dropped
- summary failure: the previous summary stays
- transcript append or vector insert failure: StorageError to the caller
- any read-path enrichment failure: that section is left empty
"""

import asyncio
import time
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta

from pydantic import ValidationError as PydanticValidationError

from memoria.config.models.memory import MemoryConfig
from memoria.errors import BackendError, ConfigError, StorageError, ValidationError
from memoria.memory.ingestion.dedupe import Dedupe
from memoria.memory.ingestion.extractor import Extractor, HeuristicExtractor
from memoria.memory.ingestion.llm_extractor import LLMExtractor
from memoria.memory.ingestion.rules import HeuristicRule
from memoria.memory.ingestion.summarizer import Summarizer
from memoria.memory.maintenance import MemoryMaintenance
from memoria.memory.models import (
    MemoryDraft,
    MemoryItem,
    PreparedContext,
    RankedMemory,
    RecordedTurn,
    SessionId,
    SessionSummary,
    ToolEvent,
    TranscriptEvent,
    TranscriptRole,
    TurnId,
    utc_now,
)
from memoria.memory.prompt.budget import enforce_budget
from memoria.memory.prompt.builder import PromptParts, build_prompt
from memoria.memory.retrieval.pruner import Pruner, SweepStats
from memoria.memory.retrieval.query import build_query_text
from memoria.memory.retrieval.ranker import Ranker
from memoria.memory.stores.factory import MemoryBackends
from memoria.observability.logging import get_logger
from memoria.observability.metrics import (
    DEGRADATIONS,
    MEMORIES_REJECTED,
    MEMORIES_RETRIEVED,
    MEMORIES_STORED,
    MEMORIES_SUPPRESSED,
    PREPARE_CONTEXT_LATENCY,
    PROMPT_CHARS,
    RECORD_TURN_LATENCY,
    SUMMARIES_REGENERATED,
    TURNS_RECORDED,
)
from memoria.providers.llm.base import ProviderTimeoutError

logger = get_logger(__name__)

# Search fetches extra candidates so expired items and re-ranking do not
# starve the final top_k.
SEARCH_OVERFETCH = 2


def _validated(config: MemoryConfig) -> MemoryConfig:
    # fields may have been assigned after construction without validation
    try:
        return MemoryConfig.model_validate(config.model_dump())
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid memory configuration: {e}", cause=e) from e


class MemoryEngine:
    """Shared, long-lived memory layer for a stateless conversational agent."""

    def __init__(
        self,
        config: MemoryConfig,
        backends: MemoryBackends,
        *,
        clock: Callable[[], datetime] = utc_now,
        rules: Sequence[HeuristicRule] | None = None,
    ):
        """Initialize the engine.

        Args:
            config: Memory configuration
            backends: Stores and providers
            clock: Source of the current time (tests pass a fixed clock)
            rules: Heuristic rules replacing the built-in table

        Raises:
            ConfigError: If the configuration is invalid, or the embedding
                backend's dimension disagrees with it
        """
        config = _validated(config)
        if backends.embedder.dimensions != config.embedding.ndims:
            raise ConfigError(
                f"Embedding provider dimension {backends.embedder.dimensions} "
                f"does not match embedding.ndims {config.embedding.ndims}"
            )

        self._config = config
        self._backends = backends
        self._clock = clock

        heuristic = HeuristicExtractor(config.extractor, config.prompt, rules=rules)
        model = None
        if config.extractor.mode == "heuristic_llm":
            model = LLMExtractor(backends.llm, config.extractor, config.prompt, config.llm)
        self._extractor = Extractor(config.extractor, heuristic, model)
        self._dedupe = Dedupe(config.short_term.cache_capacity, clock=clock)
        self._summarizer = Summarizer(backends.llm, config.summary, config.llm)
        self._ranker = Ranker(config.scoring, config.retrieval.top_k)
        self._pruner = Pruner(config.retention)
        self._maintenance: MemoryMaintenance | None = None

    @classmethod
    def from_config(
        cls,
        config: MemoryConfig,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> "MemoryEngine":
        """Build an engine and its backends from configuration."""
        return cls(config, MemoryBackends.from_config(config), clock=clock)

    @property
    def config(self) -> MemoryConfig:
        return self._config

    @property
    def backends(self) -> MemoryBackends:
        return self._backends

    @property
    def pruner(self) -> Pruner:
        return self._pruner

    @property
    def clock(self) -> Callable[[], datetime]:
        return self._clock

    async def start(self) -> None:
        """Connect storage, create the schema and start the TTL sweep if enabled."""
        await self._backends.start(self._config)
        if self._config.maintenance.enabled:
            self._maintenance = MemoryMaintenance(
                self._pruner,
                self._backends.vectors,
                interval_seconds=self._config.maintenance.interval_seconds,
                clock=self._clock,
            )
            await self._maintenance.start()

    async def close(self) -> None:
        if self._maintenance is not None:
            await self._maintenance.stop()
            self._maintenance = None
        await self._backends.close()

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    async def record_turn(
        self,
        session_id: SessionId,
        user_text: str,
        assistant_text: str,
        tool_events: Sequence[ToolEvent] | None = None,
    ) -> RecordedTurn:
        """Persist one completed turn and derive long-term memories from it.

        Raises:
            StorageError: If the transcript append or a memory insert fails.
                The transcript is not rolled back when a later step fails.
        """
        started = time.perf_counter()
        now = self._clock()
        turn_id = TurnId.new()
        events = self._build_events(session_id, turn_id, user_text, assistant_text, tool_events, now)

        try:
            await self._backends.transcripts.append(events)
            turn_counter = await self._backends.transcripts.count_turns(session_id)
        except StorageError as e:
            logger.error(
                "transcript_append_failed",
                session_id=str(session_id),
                turn_id=str(turn_id),
                error=str(e),
            )
            raise
        TURNS_RECORDED.inc()

        degraded: list[str] = []

        extraction = await self._extractor.extract(
            events, user_text, assistant_text, turn_counter
        )
        degraded.extend(extraction.degraded)
        rejected = extraction.rejected

        admitted, suppressed = await self._admit(session_id, extraction.drafts, now)

        stored: list[MemoryItem] = []
        if admitted:
            vectors = await self._embed_drafts(session_id, admitted)
            if vectors is None:
                degraded.append("embedding")
            else:
                stored, dimension_rejects = await self._persist(
                    session_id, admitted, vectors, now
                )
                rejected += dimension_rejects

        summary_updated = False
        if turn_counter % self._config.summary.interval_turns == 0:
            summary_updated = await self._regenerate_summary(session_id, turn_counter, now)
            if not summary_updated:
                degraded.append("summary")

        latency = time.perf_counter() - started
        RECORD_TURN_LATENCY.observe(latency)
        logger.info(
            "turn_recorded",
            session_id=str(session_id),
            turn_id=str(turn_id),
            turn_counter=turn_counter,
            stored=len(stored),
            suppressed=suppressed,
            rejected=rejected,
            summary_updated=summary_updated,
            degraded=degraded,
            latency_ms=round(latency * 1000, 2),
        )

        return RecordedTurn(
            turn_id=turn_id,
            turn_counter=turn_counter,
            events=events,
            stored=stored,
            suppressed=suppressed,
            rejected=rejected,
            summary_updated=summary_updated,
            degraded=degraded,
        )

    @staticmethod
    def _build_events(
        session_id: SessionId,
        turn_id: TurnId,
        user_text: str,
        assistant_text: str,
        tool_events: Sequence[ToolEvent] | None,
        now: datetime,
    ) -> list[TranscriptEvent]:
        # user, then tools, then assistant; a microsecond apart so the
        # order survives any store that sorts by timestamp alone
        specs: list[tuple[TranscriptRole, str, str | None, dict | None]] = [
            (TranscriptRole.USER, user_text, None, None)
        ]
        for tool in tool_events or ():
            specs.append((TranscriptRole.TOOL, tool.content, tool.tool_name, tool.payload))
        if assistant_text:
            specs.append((TranscriptRole.ASSISTANT, assistant_text, None, None))

        return [
            TranscriptEvent(
                turn_id=turn_id,
                session_id=session_id,
                role=role,
                content=content,
                timestamp=now + timedelta(microseconds=offset),
                tool_name=tool_name,
                tool_payload=payload,
            )
            for offset, (role, content, tool_name, payload) in enumerate(specs)
        ]

    async def _admit(
        self,
        session_id: SessionId,
        drafts: Sequence[MemoryDraft],
        now: datetime,
    ) -> tuple[list[MemoryDraft], int]:
        """Split drafts into admitted and suppressed duplicates.

        The LRU cache answers first; on a miss the store is asked, so
        uniqueness survives cache eviction and restarts. A cache hit
        suppresses regardless of kind; a stored item that has already
        expired does not count as a duplicate.
        """
        admitted: list[MemoryDraft] = []
        suppressed = 0
        try:
            for draft in drafts:
                content_hash = draft.content_hash
                if not self._dedupe.admit(session_id, content_hash):
                    suppressed += 1
                    continue
                try:
                    existing = await self._backends.vectors.get_by_hash(
                        session_id, content_hash
                    )
                except StorageError:
                    self._dedupe.forget(session_id, content_hash)
                    raise
                if existing is not None and not self._pruner.is_expired(existing, now):
                    suppressed += 1
                    continue
                admitted.append(draft)
        except StorageError:
            self._release(session_id, admitted)
            raise

        if suppressed:
            MEMORIES_SUPPRESSED.inc(suppressed)
        return admitted, suppressed

    def _release(self, session_id: SessionId, drafts: Sequence[MemoryDraft]) -> None:
        for draft in drafts:
            self._dedupe.forget(session_id, draft.content_hash)

    async def _embed_drafts(
        self,
        session_id: SessionId,
        drafts: list[MemoryDraft],
    ) -> list[list[float]] | None:
        """Embed all admitted drafts in one call; None means drop them all."""
        embedder = self._backends.embedder
        timeout = self._config.embedding.timeout_seconds
        try:
            try:
                response = await asyncio.wait_for(
                    embedder.embed([d.content for d in drafts]),
                    timeout=timeout,
                )
            except TimeoutError:
                raise ProviderTimeoutError(
                    f"Embedding timed out after {timeout}s",
                    provider=embedder.provider_name,
                ) from None
            if len(response.embeddings) != len(drafts):
                raise BackendError(
                    f"Expected {len(drafts)} embeddings, got {len(response.embeddings)}",
                    provider=embedder.provider_name,
                )
        except BackendError as e:
            self._release(session_id, drafts)
            DEGRADATIONS.labels(step="embedding").inc()
            logger.warning(
                "embedding_failed",
                session_id=str(session_id),
                dropped=len(drafts),
                error=str(e),
                error_type=type(e).__name__,
            )
            return None
        return response.embeddings

    async def _persist(
        self,
        session_id: SessionId,
        drafts: list[MemoryDraft],
        vectors: list[list[float]],
        now: datetime,
    ) -> tuple[list[MemoryItem], int]:
        stored: list[MemoryItem] = []
        rejected = 0
        ndims = self._config.embedding.ndims

        for index, (draft, vector) in enumerate(zip(drafts, vectors)):
            try:
                if len(vector) != ndims:
                    raise ValidationError(
                        f"Embedding has {len(vector)} dimensions, expected {ndims}"
                    )
                item = MemoryItem.from_draft(draft, session_id, vector, now=now)
                await self._backends.vectors.insert(item)
            except ValidationError as e:
                rejected += 1
                self._dedupe.forget(session_id, draft.content_hash)
                MEMORIES_REJECTED.labels(reason="dimension").inc()
                logger.warning(
                    "memory_rejected",
                    session_id=str(session_id),
                    kind=draft.kind.value,
                    error=str(e),
                )
                continue
            except StorageError as e:
                self._release(session_id, drafts[index:])
                logger.error(
                    "memory_insert_failed",
                    session_id=str(session_id),
                    stored=len(stored),
                    remaining=len(drafts) - index,
                    error=str(e),
                )
                raise

            stored.append(item)
            MEMORIES_STORED.labels(kind=item.kind.value, source=item.source.value).inc()

        return stored, rejected

    async def _regenerate_summary(
        self,
        session_id: SessionId,
        turn_counter: int,
        now: datetime,
    ) -> bool:
        """Fold events since the last regeneration into the summary.

        Best-effort: any failure leaves the previous summary in place.
        """
        try:
            previous = await self._backends.summaries.get(session_id)
            since = previous.updated_at if previous is not None else None
            events = await self._backends.transcripts.events_since(session_id, since)
            text = await self._summarizer.summarize(
                previous.text if previous is not None else None, events
            )
            await self._backends.summaries.upsert(
                SessionSummary(
                    session_id=session_id,
                    text=text,
                    turn_counter=turn_counter,
                    updated_at=max(now, events[-1].timestamp) if events else now,
                )
            )
        except (BackendError, StorageError) as e:
            DEGRADATIONS.labels(step="summary").inc()
            logger.warning(
                "summary_regeneration_failed",
                session_id=str(session_id),
                turn_counter=turn_counter,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        SUMMARIES_REGENERATED.labels(mode=self._summarizer.mode).inc()
        logger.info(
            "summary_regenerated",
            session_id=str(session_id),
            turn_counter=turn_counter,
            events=len(events),
            chars=len(text),
        )
        return True

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    async def prepare_context(
        self,
        session_id: SessionId,
        user_message: str,
        recent_turns_hint: int | None = None,
    ) -> PreparedContext:
        """Assemble the prompt context for the next model call.

        Read-only apart from refreshing last_accessed_at on retrieved
        items. Never fails because of an enrichment step: transcript,
        retrieval and summary failures leave their section empty and are
        listed in ``degraded``.

        Args:
            session_id: Session the message belongs to
            user_message: Current user message, never trimmed
            recent_turns_hint: Caps the short-term window below
                ``short_term.window`` when given
        """
        started = time.perf_counter()
        now = self._clock()
        degraded: list[str] = []

        window = self._config.short_term.window
        if recent_turns_hint is not None:
            window = max(0, min(window, recent_turns_hint))

        short_term: list[TranscriptEvent] = []
        try:
            short_term = await self._backends.transcripts.recent(session_id, window)
        except StorageError as e:
            self._degrade(degraded, "transcript", session_id, e)

        ranked: list[RankedMemory] = []
        try:
            ranked = await self._retrieve(session_id, user_message, short_term, now)
        except (BackendError, StorageError, ValidationError, TimeoutError) as e:
            self._degrade(degraded, "retrieval", session_id, e)

        summary: str | None = None
        try:
            record = await self._backends.summaries.get(session_id)
            summary = record.text if record is not None and record.text else None
        except StorageError as e:
            self._degrade(degraded, "summary", session_id, e)

        parts = PromptParts(
            user_message=user_message,
            summary=summary,
            memories=ranked,
            short_term=short_term,
        )
        trimmed = enforce_budget(
            parts,
            self._config.prompt.max_chars,
            self._config.prompt.max_memory_chars,
            now,
        )
        prompt = build_prompt(trimmed, now)

        latency = time.perf_counter() - started
        PREPARE_CONTEXT_LATENCY.observe(latency)
        PROMPT_CHARS.observe(len(prompt))
        MEMORIES_RETRIEVED.observe(len(trimmed.memories))
        logger.info(
            "context_prepared",
            session_id=str(session_id),
            memories=len(trimmed.memories),
            memories_dropped=len(ranked) - len(trimmed.memories),
            short_term=len(trimmed.short_term),
            has_summary=trimmed.summary is not None,
            prompt_chars=len(prompt),
            degraded=degraded,
            latency_ms=round(latency * 1000, 2),
        )

        return PreparedContext(
            summary=trimmed.summary,
            memories=trimmed.memories,
            short_term=trimmed.short_term,
            user_message=user_message,
            prompt=prompt,
            degraded=degraded,
        )

    async def _retrieve(
        self,
        session_id: SessionId,
        user_message: str,
        short_term: Sequence[TranscriptEvent],
        now: datetime,
    ) -> list[RankedMemory]:
        retrieval = self._config.retrieval
        query = build_query_text(
            user_message,
            short_term,
            include_history=retrieval.include_history_in_query,
        )

        query_vector = await asyncio.wait_for(
            self._backends.embedder.embed_single(query),
            timeout=self._config.embedding.timeout_seconds,
        )
        if len(query_vector) != self._config.embedding.ndims:
            raise ValidationError(
                f"Query embedding has {len(query_vector)} dimensions, "
                f"expected {self._config.embedding.ndims}"
            )

        hits = await asyncio.wait_for(
            self._backends.vectors.search(
                query_vector,
                session_id=session_id if retrieval.scope == "session" else None,
                top_k=retrieval.top_k * SEARCH_OVERFETCH,
                min_similarity=retrieval.min_similarity,
            ),
            timeout=self._config.storage.command_timeout,
        )

        ranked = self._ranker.rank(self._pruner.filter_live(hits, now), now)

        if ranked and retrieval.touch_on_access:
            try:
                await self._backends.vectors.touch([r.item.id for r in ranked], now)
            except StorageError as e:
                logger.warning(
                    "memory_touch_failed",
                    session_id=str(session_id),
                    error=str(e),
                )
        return ranked

    @staticmethod
    def _degrade(
        degraded: list[str],
        step: str,
        session_id: SessionId,
        error: Exception,
    ) -> None:
        degraded.append(step)
        DEGRADATIONS.labels(step=step).inc()
        logger.warning(
            f"{step}_degraded",
            session_id=str(session_id),
            error=str(error),
            error_type=type(error).__name__,
        )

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def sweep_expired(self, now: datetime | None = None) -> SweepStats:
        """Delete expired items using the same predicate as the read path."""
        return await self._pruner.sweep(self._backends.vectors, now or self._clock())
