"""Tests for vector utilities."""

import pytest

from memoria.utils.vector import (
    cosine_similarities,
    cosine_similarity,
    from_pgvector,
    to_pgvector,
)


class TestCosineSimilarity:
    def test_identical(self) -> None:
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_orthogonal(self) -> None:
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite(self) -> None:
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)

    def test_zero_vector(self) -> None:
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0

    def test_length_mismatch(self) -> None:
        with pytest.raises(ValueError, match="same length"):
            cosine_similarity([1.0], [1.0, 2.0])

    def test_empty(self) -> None:
        with pytest.raises(ValueError, match="empty"):
            cosine_similarity([], [])


class TestCosineSimilarities:
    def test_matches_scalar_version(self) -> None:
        query = [0.3, 0.1, 0.9]
        matrix = [[0.3, 0.1, 0.9], [1.0, 0.0, 0.0], [0.0, 0.0, 0.0]]

        scores = cosine_similarities(query, matrix)

        assert scores[0] == pytest.approx(1.0)
        assert scores[1] == pytest.approx(cosine_similarity(query, matrix[1]))
        assert scores[2] == 0.0

    def test_empty_matrix(self) -> None:
        assert cosine_similarities([1.0], []) == []

    def test_dimension_mismatch(self) -> None:
        with pytest.raises(ValueError):
            cosine_similarities([1.0, 0.0], [[1.0, 0.0, 0.0]])


class TestPgvectorFormat:
    def test_to_pgvector(self) -> None:
        assert to_pgvector([0.5, -1.0, 2.0]) == "[0.5,-1.0,2.0]"

    def test_from_text(self) -> None:
        assert from_pgvector("[0.5,-1,2]") == [0.5, -1.0, 2.0]

    def test_from_list_and_none(self) -> None:
        assert from_pgvector([1, 2]) == [1.0, 2.0]
        assert from_pgvector(None) is None
        assert from_pgvector("[]") == []
