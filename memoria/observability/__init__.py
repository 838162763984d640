"""Observability: structured logging and Prometheus metrics."""

from memoria.observability.logging import (
    configure_logging,
    get_logger,
    session_context,
    setup_logging,
)

__all__ = ["configure_logging", "get_logger", "session_context", "setup_logging"]
