"""Tests for cosine similarity and top-K ranking."""
import math

import pytest

from docqa.errors import EmptyCorpus
from docqa.rag.ranker import cosine_similarity, rank_chunks


class TestCosineSimilarity:
    def test_identical_vectors(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_opposite_vectors(self):
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0

    @pytest.mark.parametrize(
        "a,b",
        [
            ([0.3, -0.2, 0.9], [0.1, 0.8, -0.4]),
            ([1e-3, 5.0], [7.0, -2.0]),
            ([0.6, 0.8], [0.8, 0.6]),
        ],
    )
    def test_symmetric_and_bounded(self, a, b):
        assert cosine_similarity(a, b) == cosine_similarity(b, a)
        assert -1.0 <= cosine_similarity(a, b) <= 1.0

    def test_normalized_vectors_stay_within_bounds(self):
        v = [1 / math.sqrt(3)] * 3
        assert cosine_similarity(v, v) <= 1.0

    def test_mismatched_lengths_give_zero(self):
        assert cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0]) == 0.0

    def test_zero_norm_gives_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0
        assert cosine_similarity([1.0, 1.0], [0.0, 0.0]) == 0.0

    def test_missing_vectors_give_zero(self):
        assert cosine_similarity(None, [1.0]) == 0.0
        assert cosine_similarity([], []) == 0.0


class TestRankChunks:
    def test_empty_corpus_raises(self):
        with pytest.raises(EmptyCorpus):
            rank_chunks([1.0, 0.0], [])

    def test_sorted_descending_and_limited(self, chunk_factory):
        chunks = [
            chunk_factory("low", [0.0, 1.0]),
            chunk_factory("high", [1.0, 0.0]),
            chunk_factory("mid", [1.0, 1.0]),
            chunk_factory("negative", [-1.0, 0.0]),
        ]
        results = rank_chunks([1.0, 0.0], chunks, top_k=3)

        assert [r.chunk.text for r in results] == ["high", "mid", "low"]
        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)

    def test_ties_keep_document_order(self, chunk_factory):
        chunks = [
            chunk_factory("first", [1.0, 0.0], chunk_id="a"),
            chunk_factory("other", [0.0, 1.0], chunk_id="b"),
            chunk_factory("second", [2.0, 0.0], chunk_id="c"),
            chunk_factory("third", [3.0, 0.0], chunk_id="d"),
        ]
        results = rank_chunks([1.0, 0.0], chunks, top_k=4)

        assert [r.chunk.id for r in results] == ["a", "c", "d", "b"]

    def test_unembedded_chunks_excluded(self, chunk_factory):
        chunks = [
            chunk_factory("no vector"),
            chunk_factory("vector", [1.0, 0.0]),
        ]
        results = rank_chunks([1.0, 0.0], chunks, top_k=5)

        assert [r.chunk.text for r in results] == ["vector"]

    def test_all_unembedded_gives_empty_result(self, chunk_factory):
        chunks = [chunk_factory("one"), chunk_factory("two")]

        assert rank_chunks([1.0, 0.0], chunks, top_k=3) == []

    def test_mismatched_dimension_scores_zero(self, chunk_factory):
        chunks = [chunk_factory("wrong size", [1.0, 0.0, 0.0])]
        [result] = rank_chunks([1.0, 0.0], chunks, top_k=3)

        assert result.score == 0.0

    def test_single_chunk_returned_for_larger_k(self, chunk_factory):
        chunk = chunk_factory("Paris is the capital of France.", [0.2, 0.9], page_number=1)
        results = rank_chunks([0.1, 0.7], [chunk], top_k=3)

        assert len(results) == 1
        assert results[0].chunk is chunk
        source = results[0].to_source()
        assert source.page_number == 1
        assert source.chunk_id == chunk.id

    @pytest.mark.parametrize("top_k", [0, -1])
    def test_top_k_below_one_rejected(self, chunk_factory, top_k):
        chunks = [chunk_factory(f"chunk {i}", [1.0, float(i)], chunk_id=str(i)) for i in range(5)]

        with pytest.raises(ValueError):
            rank_chunks([1.0, 0.0], chunks, top_k=top_k)

    def test_default_top_k_from_config(self, chunk_factory):
        chunks = [chunk_factory(f"chunk {i}", [1.0, float(i)], chunk_id=str(i)) for i in range(5)]

        assert len(rank_chunks([1.0, 0.0], chunks)) == 3
