"""Shared settings for HTTP-backed providers."""

import os

DEFAULT_OLLAMA_URL = "http://127.0.0.1:11434"


def resolve_ollama_url(base_url: str | None = None) -> str:
    """Configured URL, else MEMORIA_OLLAMA_URL, else localhost."""
    url = base_url or os.environ.get("MEMORIA_OLLAMA_URL") or DEFAULT_OLLAMA_URL
    return url.rstrip("/")
