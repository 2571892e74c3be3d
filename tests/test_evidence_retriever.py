"""Tests for cosine similarity and evidence retrieval."""

import math

import pytest

from core.entities import Passage
from core.evidence_retriever import (
    cosine_similarity,
    find_top_matches,
    retrieve_evidence,
)
from util.errors import DimensionMismatchError, NoPassagesError


def _passage(source_index: int, text: str = "some passage text here") -> Passage:
    return Passage(
        text=text,
        source_id=f"s{source_index}",
        source_index=source_index,
        source_title=f"Source {source_index}",
    )


class TestCosineSimilarity:
    """Tests for cosine_similarity."""

    def test_identical(self):
        assert cosine_similarity([1, 2, 3], [1, 2, 3]) == pytest.approx(1.0)

    def test_orthogonal(self):
        assert cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)

    def test_opposite(self):
        assert cosine_similarity([1, 1], [-1, -1]) == pytest.approx(-1.0)

    def test_symmetric(self):
        a, b = [0.3, -1.2, 4.0], [2.0, 0.5, -0.7]
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))

    def test_zero_vector_is_zero_not_nan(self):
        value = cosine_similarity([0, 0, 0], [1, 2, 3])
        assert value == 0.0
        assert not math.isnan(value)

    def test_large_magnitudes(self):
        assert cosine_similarity([1e10, 1e10], [2e10, 2e10]) == pytest.approx(1.0)

    def test_dimension_mismatch(self):
        with pytest.raises(DimensionMismatchError) as exc:
            cosine_similarity([1, 2], [1, 2, 3])
        assert "Dimension mismatch: 2 vs 3" in str(exc.value)


class TestFindTopMatches:
    def test_best_first(self):
        items = [[0, 1], [1, 0], [1, 1]]
        matches = find_top_matches([1, 0], items, top_k=2)
        assert [i for i, _ in matches] == [1, 2]
        assert matches[0][1] == pytest.approx(1.0)

    def test_empty_items(self):
        assert find_top_matches([1, 0], []) == []


class TestRetrieveEvidence:
    """Tests for retrieve_evidence."""

    def test_picks_global_best(self):
        passages = [_passage(1), _passage(2)]
        result = retrieve_evidence([1, 0], passages, [[0, 1], [1, 0]], [2])
        assert result.best_passage.source_index == 2
        assert result.retrieval_similarity == pytest.approx(1.0)
        assert result.global_best_support == result.retrieval_similarity
        assert result.cited_source_support == pytest.approx(1.0)
        assert result.citation_mismatch is False

    def test_citation_mismatch_when_uncited_source_is_clearly_better(self):
        passages = [_passage(1), _passage(2)]
        result = retrieve_evidence([1, 0], passages, [[0, 1], [1, 0]], [1])
        assert result.best_passage.source_index == 2
        assert result.cited_source_support == pytest.approx(0.0)
        assert result.citation_mismatch is True

    def test_no_mismatch_within_threshold(self):
        passages = [_passage(1), _passage(2)]
        # cited passage is only slightly worse than the global best
        embeddings = [[0.95, 0.05], [1.0, 0.0]]
        result = retrieve_evidence([1, 0], passages, embeddings, [1])
        assert result.best_passage.source_index == 2
        assert result.global_best_support - result.cited_source_support < 0.12
        assert result.citation_mismatch is False

    def test_no_citations_never_mismatch(self):
        passages = [_passage(1), _passage(2)]
        result = retrieve_evidence([1, 0], passages, [[0, 1], [1, 0]], [])
        assert result.citation_mismatch is False
        assert result.cited_source_support == 0.0

    def test_citation_to_missing_source_has_zero_support(self):
        passages = [_passage(1)]
        result = retrieve_evidence([1, 0], passages, [[1, 0]], [5])
        assert result.cited_source_support == 0.0
        assert result.citation_mismatch is True

    def test_best_passage_agrees_with_top_match(self):
        passages = [_passage(1), _passage(2), _passage(3)]
        embeddings = [[0.2, 1.0], [1.0, 0.1], [0.7, 0.7]]
        result = retrieve_evidence([1, 0], passages, embeddings, [3])
        top_idx, top_sim = find_top_matches([1, 0], embeddings, top_k=1)[0]
        assert result.best_passage is passages[top_idx]
        assert result.global_best_support == pytest.approx(top_sim)
        assert result.cited_source_support == pytest.approx(cosine_similarity([1, 0], [0.7, 0.7]))

    def test_ties_resolve_to_first_passage(self):
        passages = [_passage(1), _passage(2)]
        result = retrieve_evidence([1, 0], passages, [[1, 0], [2, 0]], [])
        assert result.best_passage.source_index == 1

    def test_no_passages_raises(self):
        with pytest.raises(NoPassagesError):
            retrieve_evidence([1, 0], [], [], [1])

    def test_length_mismatch_raises(self):
        with pytest.raises(ValueError):
            retrieve_evidence([1, 0], [_passage(1)], [[1, 0], [0, 1]], [])
