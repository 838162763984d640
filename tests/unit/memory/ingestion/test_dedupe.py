"""Tests for the dedupe cache."""

import pytest

from memoria.memory.ingestion import Dedupe
from memoria.memory.models import SessionId


@pytest.fixture
def dedupe() -> Dedupe:
    return Dedupe(capacity=3)


class TestDedupe:
    def test_first_admission_passes(self, dedupe, session_id) -> None:
        assert dedupe.admit(session_id, "h1") is True

    def test_repeat_is_suppressed(self, dedupe, session_id) -> None:
        dedupe.admit(session_id, "h1")
        assert dedupe.admit(session_id, "h1") is False

    def test_sessions_are_isolated(self, dedupe, session_id) -> None:
        dedupe.admit(session_id, "h1")
        assert dedupe.admit(SessionId.new(), "h1") is True

    def test_least_recently_used_is_evicted(self, dedupe, session_id) -> None:
        for content_hash in ("h1", "h2", "h3", "h4"):
            dedupe.remember(session_id, content_hash)

        assert len(dedupe) == 3
        assert dedupe.contains(session_id, "h1") is False
        assert dedupe.contains(session_id, "h4") is True

    def test_lookup_refreshes_entry(self, dedupe, session_id) -> None:
        for content_hash in ("h1", "h2", "h3"):
            dedupe.remember(session_id, content_hash)

        assert dedupe.contains(session_id, "h1")
        dedupe.remember(session_id, "h4")

        assert dedupe.contains(session_id, "h1") is True
        assert dedupe.contains(session_id, "h2") is False

    def test_forget_releases_hash(self, dedupe, session_id) -> None:
        dedupe.admit(session_id, "h1")
        dedupe.forget(session_id, "h1")

        assert dedupe.admit(session_id, "h1") is True

    def test_forget_unknown_is_noop(self, dedupe, session_id) -> None:
        dedupe.forget(session_id, "missing")
        assert len(dedupe) == 0

    def test_capacity_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            Dedupe(capacity=0)

    def test_capacity_bounds_all_sessions(self) -> None:
        dedupe = Dedupe(capacity=2)

        for _ in range(1000):
            dedupe.remember(SessionId.new(), "h")

        assert len(dedupe) == 2

    def test_eviction_is_global_least_recently_used(self, dedupe) -> None:
        first, second = SessionId.new(), SessionId.new()
        dedupe.remember(first, "h1")
        dedupe.remember(second, "h1")
        dedupe.remember(first, "h2")
        assert dedupe.contains(first, "h1")

        dedupe.remember(second, "h2")

        assert dedupe.contains(second, "h1") is False
        assert dedupe.contains(first, "h1") is True
        assert dedupe.contains(first, "h2") is True
        assert dedupe.contains(second, "h2") is True

    def test_forget_only_touches_own_session(self, dedupe, session_id) -> None:
        other = SessionId.new()
        dedupe.remember(session_id, "h1")
        dedupe.remember(other, "h1")

        dedupe.forget(session_id, "h1")

        assert dedupe.contains(session_id, "h1") is False
        assert dedupe.contains(other, "h1") is True
