import logging
import math
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Sequence

from ensemble_search.core.models.document import Chunk, RankedResult

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"\w+")


def tokenize(text: str) -> list[str]:
    """Lowercase and split on whitespace and punctuation."""
    return _TOKEN_RE.findall(text.lower())


@dataclass(frozen=True)
class _Bm25Stats:
    chunks: tuple[Chunk, ...] = ()
    lengths: tuple[int, ...] = ()
    avg_length: float = 1.0
    postings: dict[str, list[tuple[int, int]]] = field(default_factory=dict)
    idf: dict[str, float] = field(default_factory=dict)


class BM25Index:
    """In-memory Okapi BM25 index over chunk text."""

    def __init__(self, k1: float = 1.5, b: float = 0.75):
        """Initialize index.

        Args:
            k1: Term-frequency saturation.
            b: Length normalization (0 disables it).
        """
        if k1 < 0:
            raise ValueError(f"k1 must be non-negative, got {k1}")
        if not 0.0 <= b <= 1.0:
            raise ValueError(f"b must be in [0, 1], got {b}")
        self._k1 = k1
        self._b = b
        self._stats = _Bm25Stats()

    def build(self, chunks: Sequence[Chunk]) -> None:
        """Compute term statistics, replacing any previous build."""
        postings: dict[str, list[tuple[int, int]]] = {}
        lengths: list[int] = []

        for doc_idx, chunk in enumerate(chunks):
            tokens = tokenize(chunk.text)
            lengths.append(len(tokens))
            for term, tf in Counter(tokens).items():
                postings.setdefault(term, []).append((doc_idx, tf))

        n_docs = len(lengths)
        avg_length = sum(lengths) / n_docs if n_docs else 0.0

        idf = {
            term: math.log(1.0 + (n_docs - len(docs) + 0.5) / (len(docs) + 0.5))
            for term, docs in postings.items()
        }

        self._stats = _Bm25Stats(
            chunks=tuple(chunks),
            lengths=tuple(lengths),
            avg_length=avg_length or 1.0,
            postings=postings,
            idf=idf,
        )
        logger.info(f"BM25 index built: {n_docs} chunks, {len(postings)} terms")

    def search(self, query: str, k: int) -> list[RankedResult]:
        """Rank chunks by BM25 score.

        Args:
            query: Search query.
            k: Maximum number of results.

        Returns:
            Chunks containing at least one query term, best first, ties by id.
        """
        if k <= 0:
            raise ValueError(f"k must be positive, got {k}")

        stats = self._stats
        scores: dict[int, float] = {}

        for term in dict.fromkeys(tokenize(query)):
            docs = stats.postings.get(term)
            if not docs:
                continue
            idf = stats.idf[term]
            for doc_idx, tf in docs:
                norm = 1.0 - self._b + self._b * stats.lengths[doc_idx] / stats.avg_length
                scores[doc_idx] = scores.get(doc_idx, 0.0) + idf * (
                    tf * (self._k1 + 1.0) / (tf + self._k1 * norm)
                )

        ordered = sorted(
            scores, key=lambda doc_idx: (-scores[doc_idx], stats.chunks[doc_idx].id)
        )

        return [
            RankedResult(chunk=stats.chunks[doc_idx], rank=rank, score=scores[doc_idx])
            for rank, doc_idx in enumerate(ordered[:k], 1)
        ]

    def count(self) -> int:
        return len(self._stats.chunks)
