"""Shared test fixtures for the memoria test suite."""

import os
from collections.abc import Callable, Generator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from memoria.config.models import (
    EmbeddingConfig,
    LLMConfig,
    MemoryConfig,
    SummaryConfig,
)
from memoria.memory.models import SessionId
from memoria.memory.stores import (
    InMemorySummaryStore,
    InMemoryTranscriptStore,
    InMemoryVectorStore,
    MemoryBackends,
)
from memoria.providers.embedding import MockEmbeddingProvider
from memoria.providers.llm import MockLLMProvider

TEST_DIMS = 768


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Factory fixture to create TOML files in the test config directory.

    Usage:
        def test_something(mock_toml_files):
            mock_toml_files({
                "default.toml": "app_name = 'test'",
                "development.toml": "debug = true",
            })
    """

    def _create_toml_files(files: dict[str, str]) -> None:
        for filename, content in files.items():
            toml_file = test_config_dir / filename
            toml_file.write_text(content)

    return _create_toml_files


class EnvOverrideContext:
    """Context manager for temporarily setting environment variables."""

    def __init__(self, overrides: dict[str, str]) -> None:
        self.overrides = overrides
        self.original_env: dict[str, str | None] = {}

    def __enter__(self) -> None:
        for key, value in self.overrides.items():
            self.original_env[key] = os.environ.get(key)
            os.environ[key] = value

    def __exit__(self, *args: Any) -> None:
        for key in self.overrides:
            if self.original_env[key] is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = self.original_env[key]


@pytest.fixture
def env_override() -> Generator[Callable[[dict[str, str]], EnvOverrideContext], None, None]:
    """Context manager for temporarily setting environment variables.

    Usage:
        def test_something(env_override):
            with env_override({"MEMORIA_DEBUG": "true"}):
                # test code here
    """

    def _env_override(overrides: dict[str, str]) -> EnvOverrideContext:
        return EnvOverrideContext(overrides)

    yield _env_override


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear the settings cache before and after each test.

    This ensures test isolation for configuration tests.
    """
    from memoria.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class FakeClock:
    """Manually advanced clock.

    Each call returns the current instant and then moves it forward by
    ``step`` so consecutive turns get strictly increasing timestamps.
    """

    def __init__(self, start: datetime | None = None, step: timedelta | None = None) -> None:
        self.now = start or datetime(2025, 1, 1, 12, 0, tzinfo=UTC)
        self.step = step or timedelta(0)

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(step=timedelta(milliseconds=10))


@pytest.fixture
def session_id() -> SessionId:
    return SessionId.new()


@pytest.fixture
def memory_config() -> MemoryConfig:
    """Small, deterministic configuration on mock backends."""
    return MemoryConfig(
        embedding=EmbeddingConfig(provider="mock", model="mock-embedding", ndims=TEST_DIMS),
        llm=LLMConfig(provider="mock", model="mock-model"),
        summary=SummaryConfig(interval_turns=2, max_chars=400, use_llm=False),
    )


@pytest.fixture
def embedder() -> MockEmbeddingProvider:
    return MockEmbeddingProvider(dimensions=TEST_DIMS)


@pytest.fixture
def llm() -> MockLLMProvider:
    return MockLLMProvider()


@pytest.fixture
def backends(embedder: MockEmbeddingProvider, llm: MockLLMProvider) -> MemoryBackends:
    return MemoryBackends(
        transcripts=InMemoryTranscriptStore(),
        summaries=InMemorySummaryStore(),
        vectors=InMemoryVectorStore(),
        embedder=embedder,
        llm=llm,
    )
