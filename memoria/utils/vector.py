"""Vector utility functions."""

import math

import numpy as np


def cosine_similarity(vec_a: list[float], vec_b: list[float]) -> float:
    """Compute cosine similarity between two vectors.

    Cosine similarity measures the cosine of the angle between two vectors,
    ranging from -1 (opposite) to 1 (identical).

    Args:
        vec_a: First vector
        vec_b: Second vector (must be same length as vec_a)

    Returns:
        Cosine similarity score between -1 and 1

    Raises:
        ValueError: If vectors have different lengths or are empty
    """
    if len(vec_a) != len(vec_b):
        raise ValueError(
            f"Vectors must have same length: got {len(vec_a)} and {len(vec_b)}"
        )

    if len(vec_a) == 0:
        raise ValueError("Vectors cannot be empty")

    dot_product = sum(a * b for a, b in zip(vec_a, vec_b))
    norm_a = math.sqrt(sum(a * a for a in vec_a))
    norm_b = math.sqrt(sum(b * b for b in vec_b))

    if norm_a == 0 or norm_b == 0:
        return 0.0

    return dot_product / (norm_a * norm_b)


def cosine_similarities(query: list[float], matrix: list[list[float]]) -> list[float]:
    """Compute cosine similarity of one query against many vectors at once.

    Zero-norm rows score 0.0.
    """
    if not matrix:
        return []

    q = np.asarray(query, dtype=np.float64)
    m = np.asarray(matrix, dtype=np.float64)
    if m.shape[1] != q.shape[0]:
        raise ValueError(
            f"Vectors must have same length: got {q.shape[0]} and {m.shape[1]}"
        )

    norms = np.linalg.norm(m, axis=1) * np.linalg.norm(q)
    dots = m @ q
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = np.where(norms > 0, dots / norms, 0.0)
    return [float(s) for s in scores]


def to_pgvector(vector: list[float]) -> str:
    """Render a vector in pgvector's text input format."""
    return f"[{','.join(map(str, vector))}]"


def from_pgvector(raw: str | list[float] | None) -> list[float] | None:
    """Parse pgvector's text output format back into a list."""
    if raw is None:
        return None
    if isinstance(raw, list):
        return [float(x) for x in raw]
    stripped = raw.strip().lstrip("[").rstrip("]")
    if not stripped:
        return []
    return [float(x) for x in stripped.split(",")]
