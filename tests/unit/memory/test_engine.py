"""Tests for MemoryEngine: record_turn, prepare_context and degradations."""

import json
from collections.abc import Sequence

import pytest
from prometheus_client import REGISTRY

from memoria.config.models import (
    ExtractorConfig,
    PromptConfig,
    RetentionConfig,
    ShortTermConfig,
    SummaryConfig,
)
from memoria.errors import ConfigError, StorageError
from memoria.memory.engine import MemoryEngine
from memoria.memory.ingestion import HeuristicRule, default_rules
from memoria.memory.models import (
    MemoryKind,
    MemorySource,
    SessionId,
    ToolEvent,
    TranscriptEvent,
    TranscriptRole,
)
from memoria.memory.stores import InMemoryTranscriptStore, InMemoryVectorStore, MemoryBackends
from memoria.memory.stores.base import VectorStore
from memoria.providers.embedding import MockEmbeddingProvider
from memoria.providers.llm import ProviderError


class FailingTranscriptStore(InMemoryTranscriptStore):
    async def append(self, events: Sequence[TranscriptEvent]) -> None:
        raise StorageError("transcript unavailable")


class FailingSearchVectorStore(InMemoryVectorStore):
    async def search(self, query_vector, *, session_id, top_k, min_similarity):
        raise StorageError("index unavailable")


class FailingInsertVectorStore(InMemoryVectorStore):
    async def insert(self, item) -> None:
        raise StorageError("insert rejected")


def swept_count(kind: str) -> float:
    return REGISTRY.get_sample_value("memoria_expired_swept_total", {"kind": kind}) or 0.0


def event_rules() -> list[HeuristicRule]:
    """Built-in rules plus one that tags meetings as events."""
    return [HeuristicRule.compile(r"\bmeeting\b", MemoryKind.EVENT, 200), *default_rules()]


@pytest.fixture
def engine(memory_config, backends, clock) -> MemoryEngine:
    return MemoryEngine(memory_config, backends, clock=clock)


class TestConstruction:
    def test_dimension_mismatch_is_fatal(self, memory_config, backends) -> None:
        backends.embedder = MockEmbeddingProvider(dimensions=16)

        with pytest.raises(ConfigError, match="dimension"):
            MemoryEngine(memory_config, backends)

    def test_invalid_assigned_value_is_fatal(self, memory_config, backends) -> None:
        memory_config.summary.interval_turns = 0

        with pytest.raises(ConfigError, match="interval_turns"):
            MemoryEngine(memory_config, backends)

    def test_scoring_weights_checked_at_construction(self, memory_config, backends) -> None:
        memory_config.scoring.alpha_recency = 0.7
        memory_config.scoring.beta_salience = 0.7

        with pytest.raises(ConfigError):
            MemoryEngine(memory_config, backends)

    @pytest.mark.asyncio
    async def test_rejected_config_writes_nothing(self, memory_config, backends, session_id) -> None:
        memory_config.short_term.window = -1

        with pytest.raises(ConfigError):
            MemoryEngine(memory_config, backends)

        assert await backends.transcripts.count_turns(session_id) == 0

    def test_from_config_builds_inmemory_backends(self, memory_config) -> None:
        engine = MemoryEngine.from_config(memory_config)

        assert isinstance(engine.backends.vectors, InMemoryVectorStore)
        assert engine.backends.pool is None

    @pytest.mark.asyncio
    async def test_start_and_close_without_database(self, engine) -> None:
        await engine.start()
        await engine.close()


class TestRecordTurn:
    """Write path."""

    @pytest.mark.asyncio
    async def test_stores_preference(self, engine, session_id) -> None:
        turn = await engine.record_turn(session_id, "I love dark themes", "Noted.")

        assert turn.turn_counter == 1
        assert [e.role for e in turn.events] == [TranscriptRole.USER, TranscriptRole.ASSISTANT]
        assert len(turn.stored) == 1
        item = turn.stored[0]
        assert item.kind == MemoryKind.PREFERENCE
        assert item.source == MemorySource.HEURISTIC
        assert item.salience == pytest.approx(0.7)
        assert len(item.embedding) == engine.config.embedding.ndims
        assert turn.degraded == []

    @pytest.mark.asyncio
    async def test_tool_events_between_user_and_assistant(self, engine, session_id) -> None:
        turn = await engine.record_turn(
            session_id,
            "Look up my order",
            "It shipped yesterday.",
            [ToolEvent(content="order 42 shipped", tool_name="orders", payload={"id": 42})],
        )

        assert [e.role for e in turn.events] == [
            TranscriptRole.USER, TranscriptRole.TOOL, TranscriptRole.ASSISTANT,
        ]
        assert turn.events[1].tool_payload == {"id": 42}
        timestamps = [e.timestamp for e in turn.events]
        assert timestamps == sorted(timestamps)

    @pytest.mark.asyncio
    async def test_turn_counter_increments(self, engine, session_id) -> None:
        counters = [
            (await engine.record_turn(session_id, f"hello {i}", "hi")).turn_counter
            for i in range(3)
        ]
        assert counters == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_duplicate_is_suppressed(self, engine, backends, session_id) -> None:
        await engine.record_turn(session_id, "I love dark themes", "Noted.")
        second = await engine.record_turn(session_id, "i love DARK themes", "Noted again.")

        assert second.stored == []
        assert second.suppressed == 1
        assert len(backends.vectors) == 1

    @pytest.mark.asyncio
    async def test_duplicate_suppressed_after_restart(
        self, memory_config, backends, clock, session_id
    ) -> None:
        first_engine = MemoryEngine(memory_config, backends, clock=clock)
        await first_engine.record_turn(session_id, "I love dark themes", "Noted.")

        restarted = MemoryEngine(memory_config, backends, clock=clock)
        turn = await restarted.record_turn(session_id, "I love dark themes", "Noted.")

        assert turn.suppressed == 1
        assert len(backends.vectors) == 1

    @pytest.mark.asyncio
    async def test_same_content_in_other_session_is_stored(self, engine, backends) -> None:
        await engine.record_turn(SessionId.new(), "I love dark themes", "Noted.")
        await engine.record_turn(SessionId.new(), "I love dark themes", "Noted.")

        assert len(backends.vectors) == 2

    @pytest.mark.asyncio
    async def test_transcript_failure_raises(self, memory_config, backends, clock, session_id) -> None:
        backends.transcripts = FailingTranscriptStore()
        engine = MemoryEngine(memory_config, backends, clock=clock)

        with pytest.raises(StorageError):
            await engine.record_turn(session_id, "I love dark themes", "Noted.")

    @pytest.mark.asyncio
    async def test_insert_failure_raises_and_releases_dedupe(
        self, memory_config, backends, clock, session_id
    ) -> None:
        working_store = backends.vectors
        backends.vectors = FailingInsertVectorStore()
        engine = MemoryEngine(memory_config, backends, clock=clock)

        with pytest.raises(StorageError):
            await engine.record_turn(session_id, "I love dark themes", "Noted.")

        backends.vectors = working_store
        turn = await engine.record_turn(session_id, "I love dark themes", "Noted.")
        assert len(turn.stored) == 1


class TestEmbeddingDegradation:
    @pytest.mark.asyncio
    async def test_embedding_failure_drops_candidates(
        self, engine, backends, embedder, session_id
    ) -> None:
        embedder.error = ProviderError("embedding backend down", provider="mock")

        turn = await engine.record_turn(session_id, "I love dark themes", "Noted.")

        assert turn.degraded == ["embedding"]
        assert turn.stored == []
        assert len(backends.vectors) == 0
        assert await backends.transcripts.count_turns(session_id) == 1

    @pytest.mark.asyncio
    async def test_dropped_candidate_can_be_stored_later(
        self, engine, backends, embedder, session_id
    ) -> None:
        embedder.error = ProviderError("embedding backend down", provider="mock")
        await engine.record_turn(session_id, "I love dark themes", "Noted.")

        embedder.error = None
        turn = await engine.record_turn(session_id, "I love dark themes", "Noted.")

        assert len(turn.stored) == 1
        assert turn.suppressed == 0

    @pytest.mark.asyncio
    async def test_embedding_timeout(self, memory_config, backends, embedder, clock, session_id) -> None:
        memory_config.embedding.timeout_seconds = 0.01
        embedder.delay = 0.5
        engine = MemoryEngine(memory_config, backends, clock=clock)

        turn = await engine.record_turn(session_id, "I love dark themes", "Noted.")

        assert turn.degraded == ["embedding"]
        assert turn.stored == []


class TestModelExtraction:
    @pytest.mark.asyncio
    async def test_model_pass_adds_memories(self, memory_config, backends, llm, clock, session_id) -> None:
        memory_config.extractor = ExtractorConfig(mode="heuristic_llm", llm_every_n_turns=1)
        llm.set_response(
            "Assistant message",
            json.dumps([{"kind": "goal", "content": "Wants to run a marathon", "salience": 0.8}]),
        )
        engine = MemoryEngine(memory_config, backends, clock=clock)

        turn = await engine.record_turn(session_id, "I love dark themes", "Noted.")

        sources = sorted(item.source.value for item in turn.stored)
        assert sources == ["heuristic", "model"]

    @pytest.mark.asyncio
    async def test_model_failure_keeps_heuristic(self, memory_config, backends, llm, clock, session_id) -> None:
        memory_config.extractor = ExtractorConfig(mode="heuristic_llm", llm_every_n_turns=1)
        llm.error = ProviderError("model down", provider="mock")
        engine = MemoryEngine(memory_config, backends, clock=clock)

        turn = await engine.record_turn(session_id, "I love dark themes", "Noted.")

        assert "model_extraction" in turn.degraded
        assert [item.kind for item in turn.stored] == [MemoryKind.PREFERENCE]

    @pytest.mark.asyncio
    async def test_malformed_model_output_degrades(self, memory_config, backends, llm, clock, session_id) -> None:
        memory_config.extractor = ExtractorConfig(mode="heuristic_llm", llm_every_n_turns=1)
        llm.set_response("Assistant message", "Sure! Here are some memories: ...")
        engine = MemoryEngine(memory_config, backends, clock=clock)

        turn = await engine.record_turn(session_id, "I love dark themes", "Noted.")

        assert "model_extraction" in turn.degraded
        assert len(turn.stored) == 1


class TestSummary:
    """Rolling summary regeneration on the write path."""

    @pytest.mark.asyncio
    async def test_regenerated_on_interval(self, engine, backends, session_id) -> None:
        first = await engine.record_turn(session_id, "Hello there", "Hi!")
        second = await engine.record_turn(session_id, "I love dark themes", "Noted.")

        assert first.summary_updated is False
        assert second.summary_updated is True
        summary = await backends.summaries.get(session_id)
        assert summary.turn_counter == 2
        assert "User: Hello there" in summary.text
        assert "User: I love dark themes" in summary.text

    @pytest.mark.asyncio
    async def test_only_new_events_are_folded_in(self, engine, backends, session_id) -> None:
        for i in range(4):
            await engine.record_turn(session_id, f"message number {i}", "ok")

        summary = await backends.summaries.get(session_id)
        assert summary.turn_counter == 4
        assert summary.text.count("User: message number 0") == 1
        assert "User: message number 3" in summary.text

    @pytest.mark.asyncio
    async def test_llm_failure_keeps_previous_summary(
        self, memory_config, backends, llm, clock, session_id
    ) -> None:
        memory_config.summary = SummaryConfig(interval_turns=1, use_llm=True)
        llm.set_response("Previous summary", "User said hello.")
        engine = MemoryEngine(memory_config, backends, clock=clock)
        await engine.record_turn(session_id, "Hello there", "Hi!")

        llm.error = ProviderError("model down", provider="mock")
        turn = await engine.record_turn(session_id, "Still here", "Yes")

        assert turn.summary_updated is False
        assert "summary" in turn.degraded
        summary = await backends.summaries.get(session_id)
        assert summary.text == "User said hello."
        assert summary.turn_counter == 1


class TestPrepareContext:
    """Read path."""

    @pytest.mark.asyncio
    async def test_round_trip_retrieves_preference(self, engine, session_id) -> None:
        await engine.record_turn(session_id, "I love dark themes", "Noted.")

        context = await engine.prepare_context(session_id, "what theme do I prefer?")

        assert [m.item.content for m in context.memories] == ["I love dark themes"]
        assert "[MEMORY_RELEVANT]" in context.prompt
        assert "* (preference) I love dark themes [salience: 0.70]" in context.prompt
        assert "- User: I love dark themes" in context.prompt
        assert context.prompt.endswith("[USER_MESSAGE]\nwhat theme do I prefer?\n")
        assert context.degraded == []

    @pytest.mark.asyncio
    async def test_empty_session(self, engine, session_id) -> None:
        context = await engine.prepare_context(session_id, "hello")

        assert context.memories == []
        assert context.short_term == []
        assert context.summary is None
        assert context.prompt == "[USER_MESSAGE]\nhello\n"

    @pytest.mark.asyncio
    async def test_session_scope_isolates_memories(self, engine) -> None:
        owner = SessionId.new()
        await engine.record_turn(owner, "I love dark themes", "Noted.")

        context = await engine.prepare_context(SessionId.new(), "what theme do I prefer?")

        assert context.memories == []

    @pytest.mark.asyncio
    async def test_global_scope_crosses_sessions(self, memory_config, backends, clock) -> None:
        memory_config.retrieval.scope = "global"
        engine = MemoryEngine(memory_config, backends, clock=clock)
        await engine.record_turn(SessionId.new(), "I love dark themes", "Noted.")

        context = await engine.prepare_context(SessionId.new(), "what theme do I prefer?")

        assert len(context.memories) == 1

    @pytest.mark.asyncio
    async def test_short_term_window_and_hint(self, memory_config, backends, clock, session_id) -> None:
        memory_config.short_term = ShortTermConfig(window=4)
        engine = MemoryEngine(memory_config, backends, clock=clock)
        for i in range(5):
            await engine.record_turn(session_id, f"message {i}", f"reply {i}")

        full = await engine.prepare_context(session_id, "next")
        hinted = await engine.prepare_context(session_id, "next", recent_turns_hint=2)

        assert [e.content for e in full.short_term] == ["message 3", "reply 3", "message 4", "reply 4"]
        assert [e.content for e in hinted.short_term] == ["message 4", "reply 4"]

    @pytest.mark.asyncio
    async def test_summary_included(self, engine, session_id) -> None:
        await engine.record_turn(session_id, "Hello there", "Hi!")
        await engine.record_turn(session_id, "How are you", "Fine")

        context = await engine.prepare_context(session_id, "ok")

        assert context.summary is not None
        assert context.prompt.startswith("[MEMORY_SUMMARY]\n")

    @pytest.mark.asyncio
    async def test_budget_is_enforced(self, memory_config, backends, clock, session_id) -> None:
        memory_config.prompt = PromptConfig(max_chars=200, max_memory_chars=120)
        engine = MemoryEngine(memory_config, backends, clock=clock)
        statements = [
            "I love dark themes in every editor I use",
            "My name is Ada and I live in Lyon",
            "I want to learn Rust before the summer",
            "I hate long meetings that have no agenda",
        ]
        for statement in statements:
            await engine.record_turn(session_id, statement, "Noted, I will remember that.")

        context = await engine.prepare_context(session_id, "what theme do I prefer?")

        assert len(context.prompt) <= 200
        assert context.prompt.endswith("[USER_MESSAGE]\nwhat theme do I prefer?\n")
        assert context.user_message == "what theme do I prefer?"

    @pytest.mark.asyncio
    async def test_touch_updates_last_accessed(self, engine, backends, clock, session_id) -> None:
        turn = await engine.record_turn(session_id, "I love dark themes", "Noted.")
        stored = turn.stored[0]
        clock.advance(30)

        await engine.prepare_context(session_id, "what theme do I prefer?")

        item = await backends.vectors.get_by_hash(session_id, stored.content_hash)
        assert item.last_accessed_at > stored.last_accessed_at
        assert item.created_at == stored.created_at

    @pytest.mark.asyncio
    async def test_retrieval_failure_degrades(self, engine, embedder, session_id) -> None:
        await engine.record_turn(session_id, "I love dark themes", "Noted.")
        embedder.error = ProviderError("embedding backend down", provider="mock")

        context = await engine.prepare_context(session_id, "what theme do I prefer?")

        assert context.degraded == ["retrieval"]
        assert context.memories == []
        assert [e.content for e in context.short_term] == ["I love dark themes", "Noted."]

    @pytest.mark.asyncio
    async def test_search_failure_degrades(self, memory_config, backends, clock, session_id) -> None:
        backends.vectors = FailingSearchVectorStore()
        engine = MemoryEngine(memory_config, backends, clock=clock)

        context = await engine.prepare_context(session_id, "anything")

        assert context.degraded == ["retrieval"]
        assert context.prompt == "[USER_MESSAGE]\nanything\n"


class TestExpiry:
    """TTL on the read path and in the sweep."""

    @pytest.fixture
    def ttl_engine(self, memory_config, backends, clock) -> MemoryEngine:
        memory_config.retention = RetentionConfig(ttl_seconds_by_kind={MemoryKind.EVENT: 60})
        return MemoryEngine(memory_config, backends, clock=clock, rules=event_rules())

    @pytest.mark.asyncio
    async def test_expired_item_not_retrieved(self, ttl_engine, clock, session_id) -> None:
        turn = await ttl_engine.record_turn(session_id, "We had a meeting with the design team", "ok")
        assert [item.kind for item in turn.stored] == [MemoryKind.EVENT]

        fresh = await ttl_engine.prepare_context(session_id, "meeting with the design team")
        assert len(fresh.memories) == 1

        clock.advance(61)
        stale = await ttl_engine.prepare_context(session_id, "meeting with the design team")
        assert stale.memories == []

    @pytest.mark.asyncio
    async def test_sweep_deletes_expired(self, ttl_engine, backends, clock, session_id) -> None:
        await ttl_engine.record_turn(session_id, "We had a meeting with the design team", "ok")
        await ttl_engine.record_turn(session_id, "I love dark themes", "ok")
        clock.advance(61)

        stats = await ttl_engine.sweep_expired()

        assert stats.deleted == 1
        assert len(backends.vectors) == 1

    @pytest.mark.asyncio
    async def test_sweep_counts_deleted_items(self, ttl_engine, clock, session_id) -> None:
        before = swept_count("event")
        await ttl_engine.record_turn(session_id, "We had a meeting with the design team", "ok")
        clock.advance(61)

        await ttl_engine.sweep_expired()

        assert swept_count("event") - before == 1

    @pytest.mark.asyncio
    async def test_recent_cache_hit_suppresses_even_after_expiry(
        self, ttl_engine, clock, session_id
    ) -> None:
        await ttl_engine.record_turn(session_id, "We had a meeting with the design team", "ok")
        clock.advance(61)

        turn = await ttl_engine.record_turn(session_id, "We had a meeting with the design team", "ok")

        assert turn.stored == []
        assert turn.suppressed == 1

    @pytest.mark.asyncio
    async def test_expired_item_is_not_a_duplicate_in_store(
        self, ttl_engine, memory_config, backends, clock, session_id
    ) -> None:
        await ttl_engine.record_turn(session_id, "We had a meeting with the design team", "ok")
        clock.advance(61)
        restarted = MemoryEngine(memory_config, backends, clock=clock, rules=event_rules())

        turn = await restarted.record_turn(session_id, "We had a meeting with the design team", "ok")

        assert len(turn.stored) == 1
        assert turn.suppressed == 0
        assert len(backends.vectors) == 1

    @pytest.mark.asyncio
    async def test_live_item_with_ttl_still_suppressed(self, ttl_engine, session_id) -> None:
        await ttl_engine.record_turn(session_id, "We had a meeting with the design team", "ok")

        turn = await ttl_engine.record_turn(session_id, "We had a meeting with the design team", "ok")

        assert turn.suppressed == 1


class TestMetricsAndBackends:
    @pytest.mark.asyncio
    async def test_backends_type(self, engine) -> None:
        assert isinstance(engine.backends, MemoryBackends)
        assert isinstance(engine.backends.vectors, VectorStore)
