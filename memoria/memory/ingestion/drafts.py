"""Draft construction and validation shared by both extractors."""

from memoria.errors import ValidationError
from memoria.memory.models import MemoryDraft, MemoryKind, MemorySource
from memoria.memory.normalize import looks_sensitive, truncate


def build_draft(
    text: str,
    kind: MemoryKind,
    salience: float,
    source: MemorySource,
    *,
    min_content_chars: int,
    max_memory_chars: int,
) -> MemoryDraft | None:
    """Trim, truncate and validate one candidate.

    Returns None for content shorter than ``min_content_chars`` after
    trimming; such drafts are dropped silently.

    Raises:
        ValidationError: If the content is empty or carries a credential,
            or the salience is outside 0..1
    """
    content = text.strip()
    if len(content) < min_content_chars:
        return None
    if not content:
        raise ValidationError("Memory content is empty")

    content = truncate(content, max_memory_chars)
    if not 0.0 <= salience <= 1.0:
        raise ValidationError(f"Salience {salience} outside 0..1")
    if looks_sensitive(content):
        raise ValidationError("Memory content looks like a credential")

    return MemoryDraft(content=content, kind=kind, salience=salience, source=source)
