
import logging
from abc import ABC, abstractmethod
from typing import Mapping, Sequence

from ..models.document import Chunk, FusedResult, RankedResult

logger = logging.getLogger(__name__)

LEXICAL = "lexical"
VECTOR = "vector"


class FusionStrategy(ABC):
    """Base class for rank fusion strategies."""

    @abstractmethod
    def fuse(
        self, ranked_lists: Mapping[str, Sequence[RankedResult]], limit: int
    ) -> list[FusedResult]:
        """Merge per-retriever rankings into one ordering."""
        ...


class ReciprocalRankFusion(FusionStrategy):
    """Weighted Reciprocal Rank Fusion.

    Each retriever adds ``weight / (c + rank)`` to the score of every chunk
    it returned. Ties go to the chunk seen by more retrievers, then to the
    lower chunk id.
    """

    def __init__(self, weights: Mapping[str, float], c: float = 60.0):
        """Initialize strategy.

        Args:
            weights: Retriever name -> weight in [0, 1].
            c: Rank discount constant (> 0).
        """
        for name, weight in weights.items():
            if not 0.0 <= weight <= 1.0:
                raise ValueError(f"Weight for {name} must be in [0, 1], got {weight}")
        if c <= 0:
            raise ValueError(f"RRF constant must be positive, got {c}")

        self._weights = dict(weights)
        self._c = c

    @property
    def weights(self) -> dict[str, float]:
        return dict(self._weights)

    def fuse(
        self, ranked_lists: Mapping[str, Sequence[RankedResult]], limit: int
    ) -> list[FusedResult]:
        """Fuse ranked lists, truncated to limit."""
        scores: dict[str, float] = {}
        chunks: dict[str, Chunk] = {}
        ranks: dict[str, dict[str, int]] = {}

        for name, results in ranked_lists.items():
            if name not in self._weights:
                raise KeyError(f"No fusion weight configured for retriever {name}")
            weight = self._weights[name]

            for result in results:
                chunk_id = result.chunk.id
                if name in ranks.setdefault(chunk_id, {}):
                    continue  # duplicate within one list: best rank wins
                chunks.setdefault(chunk_id, result.chunk)
                ranks[chunk_id][name] = result.rank
                scores[chunk_id] = scores.get(chunk_id, 0.0) + weight / (
                    self._c + result.rank
                )

        ordered = sorted(
            scores,
            key=lambda chunk_id: (-scores[chunk_id], -len(ranks[chunk_id]), chunk_id),
        )

        fused = [
            FusedResult(
                chunk=chunks[chunk_id],
                score=scores[chunk_id],
                fused=True,
                ranks=ranks[chunk_id],
            )
            for chunk_id in ordered[:limit]
        ]

        if logger.isEnabledFor(logging.DEBUG):
            top = ", ".join(f"{r.chunk.id}={r.score:.5f}" for r in fused[:3])
            logger.debug(f"RRF top-3: [{top}]")

        return fused
