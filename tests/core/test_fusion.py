"""
Tests for ReciprocalRankFusion.

Covers: weighted score arithmetic, tie-breaking, determinism, limits,
parameter validation.
"""

import pytest

from ensemble_search.core.models.document import RankedResult
from ensemble_search.core.strategies import LEXICAL, VECTOR, ReciprocalRankFusion


@pytest.fixture
def rrf() -> ReciprocalRankFusion:
    return ReciprocalRankFusion(weights={LEXICAL: 0.4, VECTOR: 0.6}, c=60.0)


@pytest.fixture
def ranked(make_chunk):
    """Build a ranked list from chunk names, rank = position."""

    def _ranked(*names: str) -> list[RankedResult]:
        return [
            RankedResult(chunk=make_chunk(f"text of {name}", source_file=name), rank=rank, score=0.0)
            for rank, name in enumerate(names, 1)
        ]

    return _ranked


class TestReciprocalRankFusion:
    """Test weighted RRF."""

    def test_weighted_scores(self, rrf, ranked):
        """A: lexical#1 vector#3, B: lexical#4 vector#1 -> B wins."""
        lexical = ranked("a", "x", "y", "b")
        vector = ranked("b", "z", "a")

        results = rrf.fuse({LEXICAL: lexical, VECTOR: vector}, limit=10)
        by_id = {r.chunk.id: r for r in results}

        assert by_id["a:0"].score == 0.4 / 61 + 0.6 / 63
        assert by_id["b:0"].score == 0.4 / 64 + 0.6 / 61
        assert [r.chunk.id for r in results][:2] == ["b:0", "a:0"]
        assert by_id["a:0"].ranks == {LEXICAL: 1, VECTOR: 3}
        assert all(r.fused for r in results)

    def test_single_list_contribution(self, rrf, ranked):
        results = rrf.fuse({LEXICAL: ranked("p", "q"), VECTOR: []}, limit=5)

        assert [r.chunk.id for r in results] == ["p:0", "q:0"]
        assert results[1].score == 0.4 / 62
        assert results[1].ranks == {LEXICAL: 2}

    def test_scores_non_increasing(self, rrf, ranked):
        results = rrf.fuse(
            {LEXICAL: ranked("a", "b", "c", "d"), VECTOR: ranked("d", "e", "a", "f")},
            limit=10,
        )

        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)
        assert len(results) == 6

    def test_equal_scores_break_by_chunk_id(self, ranked):
        rrf = ReciprocalRankFusion(weights={LEXICAL: 0.5, VECTOR: 0.5})

        results = rrf.fuse({LEXICAL: ranked("b"), VECTOR: ranked("a")}, limit=2)

        assert results[0].score == results[1].score
        assert [r.chunk.id for r in results] == ["a:0", "b:0"]

    def test_equal_scores_prefer_more_retrievers(self, ranked):
        """Chunk found by two retrievers beats a lower id found by one."""
        rrf = ReciprocalRankFusion(weights={LEXICAL: 1.0, VECTOR: 0.0, "extra": 1.0})

        results = rrf.fuse(
            {LEXICAL: ranked("z"), VECTOR: ranked("z"), "extra": ranked("a")}, limit=2
        )

        assert results[0].score == results[1].score
        assert [r.chunk.id for r in results] == ["z:0", "a:0"]

    def test_repeated_fusion_is_identical(self, rrf, ranked):
        lists = {LEXICAL: ranked("c", "a", "b", "d"), VECTOR: ranked("b", "d", "c", "a")}

        first = rrf.fuse(lists, limit=4)
        for _ in range(5):
            again = rrf.fuse(lists, limit=4)
            assert [(r.chunk.id, r.score) for r in again] == [
                (r.chunk.id, r.score) for r in first
            ]

    def test_duplicate_in_one_list_keeps_best_rank(self, rrf, ranked):
        lexical = ranked("a", "b")
        lexical.append(RankedResult(chunk=lexical[0].chunk, rank=3, score=0.0))

        results = rrf.fuse({LEXICAL: lexical}, limit=5)

        assert results[0].ranks == {LEXICAL: 1}
        assert results[0].score == 0.4 / 61

    def test_limit_truncates(self, rrf, ranked):
        results = rrf.fuse({LEXICAL: ranked("a", "b", "c"), VECTOR: ranked("d", "e")}, limit=2)

        assert len(results) == 2

    def test_unknown_retriever_raises(self, rrf, ranked):
        with pytest.raises(KeyError):
            rrf.fuse({"keyword": ranked("a")}, limit=1)

    @pytest.mark.parametrize("weight", [-0.1, 1.5])
    def test_rejects_weights_outside_unit_range(self, weight):
        with pytest.raises(ValueError):
            ReciprocalRankFusion(weights={LEXICAL: weight, VECTOR: 0.5})

    @pytest.mark.parametrize("c", [0, -60])
    def test_rejects_non_positive_constant(self, c):
        with pytest.raises(ValueError):
            ReciprocalRankFusion(weights={LEXICAL: 0.4, VECTOR: 0.6}, c=c)

    def test_weights_property_is_copy(self, rrf):
        weights = rrf.weights
        weights[LEXICAL] = 1.0

        assert rrf.weights[LEXICAL] == 0.4
