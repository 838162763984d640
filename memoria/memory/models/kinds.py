"""Memory item kinds and their priors."""

from enum import Enum


class MemoryKind(str, Enum):
    """Semantic category of a memory item.

    The kind drives the default salience assigned by the heuristic
    extractor, the TTL looked up by the pruner, and the tag rendered in
    the prompt. The set is closed: unknown values coming back from a
    language model are mapped to OTHER.
    """

    IDENTITY = "identity"
    FACT = "fact"
    PREFERENCE = "preference"
    AVERSION = "aversion"
    CONSTRAINT = "constraint"
    INSTRUCTION = "instruction"
    GOAL = "goal"
    TASK = "task"
    DECISION = "decision"
    EVENT = "event"
    FEEDBACK = "feedback"
    PROCEDURE = "procedure"
    TOOL_RESULT = "tool_result"
    CODE_ARTIFACT = "code_artifact"
    DOCUMENT_ARTIFACT = "document_artifact"
    MEDIA_ARTIFACT = "media_artifact"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str) -> "MemoryKind":
        """Parse a kind leniently, falling back to OTHER."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.OTHER

    @property
    def default_salience(self) -> float:
        """Importance prior in 0..1."""
        return _DEFAULT_SALIENCE[self]

    @property
    def prompt_tag(self) -> str:
        return f"({self.value})"


class MemorySource(str, Enum):
    """Where a memory item came from."""

    HEURISTIC = "heuristic"
    MODEL = "model"
    EXPLICIT = "explicit"


_DEFAULT_SALIENCE: dict[MemoryKind, float] = {
    MemoryKind.IDENTITY: 0.90,
    MemoryKind.CONSTRAINT: 0.80,
    MemoryKind.INSTRUCTION: 0.80,
    MemoryKind.DECISION: 0.75,
    MemoryKind.PREFERENCE: 0.70,
    MemoryKind.AVERSION: 0.70,
    MemoryKind.GOAL: 0.70,
    MemoryKind.FEEDBACK: 0.70,
    MemoryKind.TOOL_RESULT: 0.65,
    MemoryKind.CODE_ARTIFACT: 0.65,
    MemoryKind.FACT: 0.60,
    MemoryKind.PROCEDURE: 0.60,
    MemoryKind.TASK: 0.60,
    MemoryKind.EVENT: 0.55,
    MemoryKind.DOCUMENT_ARTIFACT: 0.55,
    MemoryKind.MEDIA_ARTIFACT: 0.55,
    MemoryKind.OTHER: 0.50,
}
