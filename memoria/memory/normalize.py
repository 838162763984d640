"""Content normalization and hashing.

The normalized form is what the dedupe boundary compares: two pieces of
content that only differ by case or whitespace hash to the same value.
"""

import hashlib
import re

_WHITESPACE = re.compile(r"\s+")

_SECRET_PATTERN = re.compile(
    r"(?i)(api[_-]?key|secret|password|token|bearer\s+[a-z0-9\-_]+|sk-[a-z0-9]{10,})"
)


def normalize_text(text: str) -> str:
    """Trim, case-fold and collapse runs of whitespace to one space."""
    return _WHITESPACE.sub(" ", text.strip()).casefold()


def hash_content(text: str) -> str:
    """Stable hex digest of the normalized content."""
    return hashlib.sha256(normalize_text(text).encode("utf-8")).hexdigest()


def truncate(text: str, max_chars: int) -> str:
    """Cut text to at most max_chars characters, dropping trailing space."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars].rstrip()


def looks_sensitive(text: str) -> bool:
    """Whether the text looks like it carries a credential."""
    return _SECRET_PATTERN.search(text) is not None
