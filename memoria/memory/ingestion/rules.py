"""Heuristic extraction rules.

Each rule maps a case-insensitive pattern to a memory kind, optionally
with its own salience in place of the kind prior. Rules are
evaluated highest priority first and the first match decides the kind
of a sentence.
"""

import re
from dataclasses import dataclass

from memoria.memory.models.kinds import MemoryKind


@dataclass(frozen=True)
class HeuristicRule:
    """One pattern rule."""

    pattern: re.Pattern[str]
    kind: MemoryKind
    priority: int
    salience: float | None = None

    def __post_init__(self) -> None:
        if self.salience is not None and not 0.0 <= self.salience <= 1.0:
            raise ValueError(f"rule salience must be within [0, 1], got {self.salience}")

    @classmethod
    def compile(
        cls,
        pattern: str,
        kind: MemoryKind,
        priority: int,
        salience: float | None = None,
    ) -> "HeuristicRule":
        return cls(
            pattern=re.compile(pattern, re.IGNORECASE),
            kind=kind,
            priority=priority,
            salience=salience,
        )

    @property
    def effective_salience(self) -> float:
        return self.kind.default_salience if self.salience is None else self.salience

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None


_RULE_TABLE: list[tuple[str, MemoryKind, int]] = [
    # identity
    (r"\b(my name is|i'm called|call me|je m'appelle|mon nom est)\s+\w+", MemoryKind.IDENTITY, 100),
    (r"\b(i am|i'm|j'ai)\s+\d+\s*(years? old|ans|yo)\b", MemoryKind.IDENTITY, 100),
    (r"\b(i live in|i'm from|based in|j'habite|je vis)\s+\w+", MemoryKind.IDENTITY, 100),
    (r"\b(i work (at|for|as)|my job is|i'm a|je suis|je travaille)\s+\w+", MemoryKind.IDENTITY, 100),
    (r"\b(i speak|i'm (fluent in|native)|my (native|first) language)\b", MemoryKind.IDENTITY, 100),
    # constraint
    (r"\b(do not|don't|never|must not|cannot|can't|shouldn't|won't)\b", MemoryKind.CONSTRAINT, 95),
    (r"\b(it's (important|critical|essential|crucial) that|always make sure)\b", MemoryKind.CONSTRAINT, 95),
    (r"\b(ne (jamais|pas)|il faut (absolument|toujours))\b", MemoryKind.CONSTRAINT, 95),
    # aversion
    (r"\b(i hate|i can't stand|i dislike|i despise|i loathe)\b", MemoryKind.AVERSION, 90),
    (r"\b(i'm allergic to|i'm intolerant|i can't (eat|have|use))\b", MemoryKind.AVERSION, 90),
    (r"\b(i'm (annoyed|frustrated|bothered) (by|when)|it annoys me)\b", MemoryKind.AVERSION, 90),
    (r"\b(je (deteste|n'aime pas|supporte pas)|j'ai horreur)\b", MemoryKind.AVERSION, 90),
    # preference
    (r"\b(i|we)\s+(like|love|prefer|enjoy|adore)\b", MemoryKind.PREFERENCE, 85),
    (r"\b(my favorite|i prefer|i always choose|i'm a fan of)\b", MemoryKind.PREFERENCE, 85),
    (r"\b(i usually|i tend to|i often|i always)\b", MemoryKind.PREFERENCE, 85),
    (r"\b(j'aime|je prefere|mon prefere|j'adore)\b", MemoryKind.PREFERENCE, 85),
    # instruction
    (r"\b(always respond|always use|use .+ format|respond in|answer in)\b", MemoryKind.INSTRUCTION, 82),
    (r"\b(be (concise|brief|detailed|formal|casual)|keep (it|things|responses))\b", MemoryKind.INSTRUCTION, 82),
    (r"\b(speak|write|reply|answer)\s+(in|only in)\s+\w+", MemoryKind.INSTRUCTION, 82),
    # goal
    (r"\b(i|we)\s+(want|need|plan|aim|intend|hope)\s+to\b", MemoryKind.GOAL, 80),
    (r"\b(my goal is|i'm trying to|i'm (working|learning|studying))\b", MemoryKind.GOAL, 80),
    (r"\b(one day i|someday i|i dream of|in the future)\b", MemoryKind.GOAL, 80),
    (r"\b(je veux|j'aimerais|mon objectif|je compte)\b", MemoryKind.GOAL, 80),
    # decision
    (r"\b(i|we)\s+(decided|will|chose|picked|selected|went with)\b", MemoryKind.DECISION, 75),
    (r"\b(i'm going to|we're going to|let's (go with|use|do))\b", MemoryKind.DECISION, 75),
    # task
    (r"\b(todo|to-do|next step|action item|need to do)\b", MemoryKind.TASK, 72),
    (r"\b(remind me to|don't forget to|remember to|i should)\b", MemoryKind.TASK, 72),
    # feedback
    (r"\b(good job|well done|that's (wrong|incorrect|right)|you (should|shouldn't))\b", MemoryKind.FEEDBACK, 70),
    (r"\b(actually|no,|that's not|incorrect|you made a mistake)", MemoryKind.FEEDBACK, 70),
    # code artifacts
    (r"\b(the (file|function|class|module|method|variable) (is|called|named))\b", MemoryKind.CODE_ARTIFACT, 65),
    (r"\.(rs|py|ts|tsx|js|jsx|go|java|cpp|c|h|hpp|css|html|json|yaml|yml|toml|sql)\b", MemoryKind.CODE_ARTIFACT, 65),
    (r"\b(commit|branch|merge|pull request|pr|issue)\s*(#?\d+|[a-f0-9]{7,})", MemoryKind.CODE_ARTIFACT, 65),
    (r"\b(in|at|see)\s+[a-zA-Z_][a-zA-Z0-9_]*::\w+", MemoryKind.CODE_ARTIFACT, 65),
    # procedure
    (r"\b(how to|step\s*\d+|first,?\s+(you|we)|then,?\s+(you|we))\b", MemoryKind.PROCEDURE, 62),
    (r"\b(to do this|the process is|follow these|here's how)\b", MemoryKind.PROCEDURE, 62),
    # fact
    (r"\b(i am|i'm|i have|i've got|i own|my .+ is)\b", MemoryKind.FACT, 60),
    (r"\b(i know|i remember|i learned|i read|i heard)\b", MemoryKind.FACT, 60),
    (r"\b(the project|this (app|application|system|code|codebase))\s+(is|uses|has)\b", MemoryKind.FACT, 60),
    # document artifacts
    (r"\b(the (document|doc|spec|readme|wiki|guide|manual))\s+(is|says|mentions)\b", MemoryKind.DOCUMENT_ARTIFACT, 55),
    (r"\.(md|txt|pdf|docx?|xlsx?|pptx?)\b", MemoryKind.DOCUMENT_ARTIFACT, 55),
    # media artifacts
    (r"\.(png|jpg|jpeg|gif|svg|mp3|wav|mp4|webm|ogg)\b", MemoryKind.MEDIA_ARTIFACT, 50),
    (r"\b(the (image|picture|photo|audio|video|sound))\s+(shows|is|was)\b", MemoryKind.MEDIA_ARTIFACT, 50),
]


def default_rules() -> list[HeuristicRule]:
    """Built-in rules, highest priority first."""
    return sort_rules(
        HeuristicRule.compile(pattern, kind, priority)
        for pattern, kind, priority in _RULE_TABLE
    )


def sort_rules(rules) -> list[HeuristicRule]:
    # stable: rules of equal priority keep their declaration order
    return sorted(rules, key=lambda rule: rule.priority, reverse=True)
