"""Score retrieved memories by similarity, recency and salience.

    score = similarity * (1 - alpha - beta) + recency_decay * alpha + salience * beta
    recency_decay = 0.5 ** (age_seconds / half_life_seconds)

Pure and deterministic for a fixed ``now``.
"""

from collections.abc import Iterable
from datetime import datetime

from memoria.config.models.memory import ScoringConfig
from memoria.memory.models import MemoryItem, RankedMemory


def recency_decay(age_seconds: float, half_life_seconds: float) -> float:
    """Exponential half-life decay: 1.0 when new, 0.5 at one half-life."""
    return 0.5 ** (max(0.0, age_seconds) / half_life_seconds)


class Ranker:
    """Combine similarity, recency and salience into one score."""

    def __init__(self, scoring: ScoringConfig, top_k: int) -> None:
        self._alpha = scoring.alpha_recency
        self._beta = scoring.beta_salience
        self._half_life = scoring.recency_half_life_seconds
        self._top_k = top_k

    def score(self, item: MemoryItem, similarity: float, now: datetime) -> RankedMemory:
        decay = recency_decay(item.age_seconds(now), self._half_life)
        salience = min(1.0, max(0.0, item.salience))
        total = (
            similarity * (1.0 - self._alpha - self._beta)
            + decay * self._alpha
            + salience * self._beta
        )
        return RankedMemory(
            item=item,
            similarity=similarity,
            recency_decay=decay,
            salience=salience,
            score=total,
        )

    def rank(
        self,
        hits: Iterable[tuple[MemoryItem, float]],
        now: datetime,
    ) -> list[RankedMemory]:
        """Best first; ties go to the more recently created item."""
        ranked = [self.score(item, similarity, now) for item, similarity in hits]
        ranked.sort(
            key=lambda r: (r.score, r.item.created_at, str(r.item.id)),
            reverse=True,
        )
        return ranked[: self._top_k]
