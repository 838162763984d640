"""Deterministic prompt block formatting.

Fixed section order, each section omitted when it has no content:

    [MEMORY_SUMMARY]
    <summary>
    [MEMORY_RELEVANT]
    * (preference) I love dark themes [salience: 0.70] [age_s: 3600]
    [SHORT_TERM]
    - User: ...
    - Assistant: ...
    [USER_MESSAGE]
    <user message>
"""

from dataclasses import dataclass, field, replace
from datetime import datetime

from memoria.memory.models import RankedMemory, TranscriptEvent

SUMMARY_HEADER = "[MEMORY_SUMMARY]"
MEMORIES_HEADER = "[MEMORY_RELEVANT]"
SHORT_TERM_HEADER = "[SHORT_TERM]"
USER_MESSAGE_HEADER = "[USER_MESSAGE]"


@dataclass
class PromptParts:
    """Inputs to the prompt block. Memories are best first, events oldest first."""

    user_message: str
    summary: str | None = None
    memories: list[RankedMemory] = field(default_factory=list)
    short_term: list[TranscriptEvent] = field(default_factory=list)

    def copy(self) -> "PromptParts":
        return replace(self, memories=list(self.memories), short_term=list(self.short_term))

    def user_message_only(self) -> "PromptParts":
        return PromptParts(user_message=self.user_message)


def render_memory(memory: RankedMemory, now: datetime) -> str:
    item = memory.item
    age = int(item.age_seconds(now))
    return (
        f"* {item.kind.prompt_tag} {item.content} "
        f"[salience: {item.salience:.2f}] [age_s: {age}]"
    )


def render_event(event: TranscriptEvent) -> str:
    return f"- {event.role.label}: {event.content}"


def build_prompt(parts: PromptParts, now: datetime) -> str:
    """Format the prompt block. A pure function of its inputs."""
    lines: list[str] = []

    if parts.summary:
        lines.append(SUMMARY_HEADER)
        lines.append(parts.summary)

    if parts.memories:
        lines.append(MEMORIES_HEADER)
        lines.extend(render_memory(memory, now) for memory in parts.memories)

    if parts.short_term:
        lines.append(SHORT_TERM_HEADER)
        lines.extend(render_event(event) for event in parts.short_term)

    lines.append(USER_MESSAGE_HEADER)
    lines.append(parts.user_message)

    return "\n".join(lines) + "\n"
