"""Opaque identifiers for sessions, memory items and turns.

Each identifier is its own value type so a MemoryId can never be passed
where a SessionId is expected. New values come from ``new()``; strings
are only accepted through ``parse()`` at storage boundaries.
"""

from typing import Self
from uuid import UUID, uuid4

from pydantic import ConfigDict, RootModel

from memoria.errors import ValidationError


class _Identifier(RootModel[UUID]):
    """Frozen UUID wrapper with equality and hashing by value."""

    model_config = ConfigDict(frozen=True)

    @classmethod
    def new(cls) -> Self:
        """Create a fresh, globally-unique identifier."""
        return cls(uuid4())

    @classmethod
    def parse(cls, raw: str | UUID) -> Self:
        """Rebuild an identifier read back from storage.

        Raises:
            ValidationError: If the raw value is not a UUID
        """
        if isinstance(raw, UUID):
            return cls(raw)
        try:
            return cls(UUID(str(raw)))
        except ValueError as e:
            raise ValidationError(
                f"Invalid {cls.__name__}: {raw!r}", cause=e
            ) from e

    @property
    def uuid(self) -> UUID:
        return self.root

    def __str__(self) -> str:
        return str(self.root)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.root})"


class SessionId(_Identifier):
    """Identity of a long-lived conversation."""


class MemoryId(_Identifier):
    """Identity of a persisted memory item."""


class TurnId(_Identifier):
    """Identity of one user/assistant exchange."""
