"""Storage backend configuration models."""

import re
from typing import Literal

from pydantic import BaseModel, Field, field_validator

StorageBackend = Literal["inmemory", "postgres"]

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


class StorageConfig(BaseModel):
    """Transcript, summary and memory item storage.

    Table names are interpolated into SQL, so they are restricted to plain
    identifiers.
    """

    backend: StorageBackend = Field(default="inmemory", description="Backend type")
    dsn: str | None = Field(
        default=None,
        description="PostgreSQL DSN (falls back to MEMORIA_DATABASE_URL / DATABASE_URL)",
    )
    min_pool_size: int = Field(default=2, gt=0, description="Minimum pooled connections")
    max_pool_size: int = Field(default=10, gt=0, description="Maximum pooled connections")
    command_timeout: float = Field(default=30.0, gt=0, description="Query timeout (seconds)")
    transcript_table: str = Field(default="memory_transcript")
    summary_table: str = Field(default="memory_summary")
    memory_table: str = Field(default="memory_items")

    @field_validator("transcript_table", "summary_table", "memory_table")
    @classmethod
    def validate_identifier(cls, value: str) -> str:
        if not _IDENTIFIER.match(value):
            raise ValueError(f"invalid table name {value!r}")
        return value
