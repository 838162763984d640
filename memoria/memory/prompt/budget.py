"""Trim prompt parts until the formatted block fits the character budget.

Order of trimming:
1. the summary is cut to ``max_memory_chars`` if it is longer;
2. lowest-scored memories are dropped one at a time;
3. the oldest short-term events are dropped one at a time;
4. the summary is cut to what is left, or dropped.
The user message is never trimmed. If it alone exceeds the budget, only
the user-message section is returned.
"""

from datetime import datetime

from memoria.memory.normalize import truncate
from memoria.memory.prompt.builder import SUMMARY_HEADER, PromptParts, build_prompt


def enforce_budget(
    parts: PromptParts,
    max_chars: int,
    max_memory_chars: int,
    now: datetime,
) -> PromptParts:
    """Return trimmed copy of ``parts``; survivors keep their order."""
    trimmed = parts.copy()

    if trimmed.summary and len(trimmed.summary) > max_memory_chars:
        trimmed.summary = truncate(trimmed.summary, max_memory_chars)

    while len(build_prompt(trimmed, now)) > max_chars:
        if trimmed.memories:
            trimmed.memories.pop()
        elif trimmed.short_term:
            trimmed.short_term.pop(0)
        elif trimmed.summary:
            trimmed.summary = _fit_summary(trimmed, max_chars, now)
            break
        else:
            break

    if len(build_prompt(trimmed, now)) > max_chars:
        return parts.user_message_only()
    return trimmed


def _fit_summary(parts: PromptParts, max_chars: int, now: datetime) -> str | None:
    without = PromptParts(
        user_message=parts.user_message,
        memories=parts.memories,
        short_term=parts.short_term,
    )
    # header line plus the summary's own newline
    overhead = len(SUMMARY_HEADER) + 2
    remaining = max_chars - len(build_prompt(without, now)) - overhead
    if remaining <= 0 or parts.summary is None:
        return None
    return truncate(parts.summary, remaining) or None
