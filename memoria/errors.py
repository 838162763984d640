"""Error hierarchy for the memory engine.

Every failure that crosses a component boundary is wrapped in one of
these types so callers can tell fatal configuration problems apart from
storage outages and degradable backend failures.
"""


class MemoriaError(Exception):
    """Base exception for all memoria errors."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConfigError(MemoriaError):
    """Raised when configuration is invalid.

    Fatal: the engine refuses to start.
    """

    pass


class StorageError(MemoriaError):
    """Raised when the durable store is unreachable or rejects a write.

    Examples:
        - Connection pool cannot be created
        - Insert rejected by the database
        - Query timeout
    """

    pass


class BackendError(MemoriaError):
    """Raised when an embedding or language-model backend fails.

    Non-fatal for the engine: triggers the documented degradations.
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.provider = provider


class ValidationError(MemoriaError):
    """Raised on malformed or oversized content.

    Examples:
        - Empty content after trimming
        - Embedding dimension mismatch
        - Content that looks like a secret
    """

    pass
