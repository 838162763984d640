"""Retrieval query text."""

from collections.abc import Sequence

from memoria.memory.models import TranscriptEvent


def build_query_text(
    user_message: str,
    history: Sequence[TranscriptEvent] = (),
    *,
    include_history: bool = False,
) -> str:
    """Text embedded for the similarity search.

    Without history this is the user message alone; with it, the recent
    window's contents precede the message, one per line.
    """
    if not include_history or not history:
        return user_message
    lines = [event.content for event in history if event.content.strip()]
    lines.append(user_message)
    return "\n".join(lines)
