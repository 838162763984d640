"""Tests for scoring and ranking retrieved memories."""

from datetime import UTC, datetime, timedelta

import pytest

from memoria.config.models import ScoringConfig
from memoria.memory.models import (
    MemoryItem,
    MemoryKind,
    SessionId,
    TranscriptEvent,
    TranscriptRole,
    TurnId,
)
from memoria.memory.retrieval import Ranker, build_query_text, recency_decay

NOW = datetime(2025, 6, 1, tzinfo=UTC)
WEEK = 604800


def make_item(content: str, age_seconds: float = 0, salience: float = 0.5) -> MemoryItem:
    return MemoryItem(
        session_id=SessionId.new(),
        kind=MemoryKind.FACT,
        content=content,
        content_hash=content,
        embedding=[1.0, 0.0],
        salience=salience,
        created_at=NOW - timedelta(seconds=age_seconds),
    )


class TestRecencyDecay:
    def test_new_item_is_one(self) -> None:
        assert recency_decay(0, WEEK) == 1.0

    def test_half_life(self) -> None:
        assert recency_decay(WEEK, WEEK) == pytest.approx(0.5)
        assert recency_decay(2 * WEEK, WEEK) == pytest.approx(0.25)

    def test_negative_age_clamped(self) -> None:
        assert recency_decay(-100, WEEK) == 1.0

    def test_strictly_decreasing_with_age(self) -> None:
        ages = [0, 1, 60, 3600, 86400, WEEK, 2 * WEEK, 10 * WEEK]
        decays = [recency_decay(age, WEEK) for age in ages]

        assert all(newer > older for newer, older in zip(decays, decays[1:]))
        assert all(0.0 < d <= 1.0 for d in decays)


class TestRanker:
    """Tests for the combined score."""

    def test_score_formula(self) -> None:
        ranker = Ranker(ScoringConfig(alpha_recency=0.15, beta_salience=0.35), top_k=5)
        item = make_item("a fact", age_seconds=WEEK, salience=0.7)

        ranked = ranker.score(item, 0.8, NOW)

        assert ranked.recency_decay == pytest.approx(0.5)
        assert ranked.score == pytest.approx(0.8 * 0.5 + 0.5 * 0.15 + 0.7 * 0.35)

    def test_pure_similarity_when_weights_zero(self) -> None:
        ranker = Ranker(ScoringConfig(alpha_recency=0.0, beta_salience=0.0), top_k=5)
        ranked = ranker.rank(
            [(make_item("low"), 0.3), (make_item("high"), 0.9)], NOW
        )
        assert [r.item.content for r in ranked] == ["high", "low"]

    def test_salience_can_outrank_similarity(self) -> None:
        ranker = Ranker(ScoringConfig(alpha_recency=0.0, beta_salience=0.9), top_k=5)
        ranked = ranker.rank(
            [
                (make_item("similar", salience=0.1), 0.9),
                (make_item("important", salience=1.0), 0.5),
            ],
            NOW,
        )
        assert ranked[0].item.content == "important"

    def test_ties_prefer_newer_items(self) -> None:
        ranker = Ranker(ScoringConfig(alpha_recency=0.0, beta_salience=0.0), top_k=5)
        older = make_item("older", age_seconds=100)
        newer = make_item("newer", age_seconds=10)

        ranked = ranker.rank([(older, 0.5), (newer, 0.5)], NOW)

        assert [r.item.content for r in ranked] == ["newer", "older"]

    def test_truncates_to_top_k(self) -> None:
        ranker = Ranker(ScoringConfig(), top_k=2)
        hits = [(make_item(f"item {i}"), 0.1 * i) for i in range(5)]

        ranked = ranker.rank(hits, NOW)

        assert len(ranked) == 2
        assert ranked[0].item.content == "item 4"

    def test_deterministic(self) -> None:
        ranker = Ranker(ScoringConfig(), top_k=10)
        hits = [(make_item(f"item {i}", age_seconds=i * 60), 0.5) for i in range(6)]

        first = [r.item.id for r in ranker.rank(hits, NOW)]
        second = [r.item.id for r in ranker.rank(list(reversed(hits)), NOW)]

        assert first == second


class TestQueryText:
    def test_user_message_only_by_default(self) -> None:
        assert build_query_text("what theme do I prefer?") == "what theme do I prefer?"

    def test_history_prepended_when_enabled(self) -> None:
        session = SessionId.new()
        history = [
            TranscriptEvent(
                turn_id=TurnId.new(),
                session_id=session,
                role=TranscriptRole.USER,
                content="Let's talk editors",
                timestamp=NOW,
            )
        ]

        query = build_query_text("which one?", history, include_history=True)

        assert query == "Let's talk editors\nwhich one?"

    def test_history_ignored_when_disabled(self) -> None:
        history = [
            TranscriptEvent(
                turn_id=TurnId.new(),
                session_id=SessionId.new(),
                role=TranscriptRole.USER,
                content="ignored",
                timestamp=NOW,
            )
        ]
        assert build_query_text("hello", history) == "hello"
