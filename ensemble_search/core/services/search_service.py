"""Search service - hybrid lexical + vector retrieval with rank fusion."""

import logging
import threading
from typing import Optional, Sequence

from ..exceptions import IndexBuildError, QueryError
from ..models.document import Chunk, FusedResult, RankedResult
from ..models.engine import EngineState
from ..protocols.lexical_index import LexicalIndexProtocol
from ..protocols.vector_index import VectorIndexProtocol
from ..strategies.fusion import LEXICAL, VECTOR, FusionStrategy

logger = logging.getLogger(__name__)


class SearchService:
    """Owns both indices and serves fused search.

    Starts ``UNINITIALIZED`` and answers with vector search only. After
    ``initialize`` has built both indices from the same chunk set it is
    ``READY`` and fuses lexical and vector rankings.
    """

    def __init__(
        self,
        vector_index: VectorIndexProtocol,
        lexical_index: LexicalIndexProtocol,
        fusion: FusionStrategy,
        top_k: int = 12,
        fetch_k: int = 20,
    ):
        """Initialize search service.

        Args:
            vector_index: Vector similarity index.
            lexical_index: Keyword index.
            fusion: Strategy merging the two rankings.
            top_k: Default number of results.
            fetch_k: Candidates fetched from each index before fusion.
        """
        self._vector = vector_index
        self._lexical = lexical_index
        self._fusion = fusion
        self._top_k = top_k
        self._fetch_k = fetch_k

        self._state = EngineState.UNINITIALIZED
        self._init_lock = threading.Lock()

    @property
    def state(self) -> EngineState:
        return self._state

    def initialize(self, chunks: Sequence[Chunk]) -> None:
        """Build both indices from one chunk set and switch to READY.

        The vector index is rebuilt only when it does not already hold
        exactly these chunks.

        Raises:
            IndexBuildError: If already READY, the chunk set is empty, or
                either build fails. State stays UNINITIALIZED on failure.
        """
        with self._init_lock:
            if self._state is EngineState.READY:
                raise IndexBuildError("Search engine is already initialized")
            if not chunks:
                raise IndexBuildError("Cannot initialize from an empty chunk set")

            logger.info(f"Initializing hybrid search with {len(chunks)} chunks")

            try:
                indexed_ids = {c.id for c in self._vector.chunks()}
                if indexed_ids != {c.id for c in chunks}:
                    logger.info("Vector index out of sync with chunk set, rebuilding")
                    self._vector.build(chunks)

                self._lexical.build(chunks)
            except Exception as e:
                logger.error(f"Failed to initialize hybrid search: {e}")
                raise IndexBuildError(
                    f"Index build failed: {e}", {"chunks": len(chunks)}
                ) from e

            self._state = EngineState.READY
            logger.info("Hybrid search ready")

    def restore(self) -> bool:
        """Initialize from chunks already persisted in the vector index.

        Returns:
            True if the engine is READY afterwards.
        """
        if self._state is EngineState.READY:
            return True

        chunks = self._vector.chunks()
        if not chunks:
            logger.info("No indexed chunks, hybrid search will initialize after ingestion")
            return False

        logger.info(f"Found {len(chunks)} indexed chunks, restoring hybrid search")
        self.initialize(chunks)
        return True

    def search(self, query: str, limit: Optional[int] = None) -> list[FusedResult]:
        """Search chunks.

        Args:
            query: Search query.
            limit: Maximum results. Defaults to top_k.

        Returns:
            Fused results, best first. Results with ``fused=False`` came
            from the vector-only fallback.

        Raises:
            QueryError: If no retrieval signal could answer.
        """
        if limit is None:
            limit = self._top_k
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")

        if self._state is not EngineState.READY:
            logger.warning("Hybrid search not initialized, falling back to vector search")
            return self._vector_only(query, limit)

        pool = max(limit, self._fetch_k)
        try:
            ranked_lists = {
                LEXICAL: self._lexical.search(query, pool),
                VECTOR: self._vector.search(query, pool),
            }
        except Exception as e:
            logger.warning(f"Hybrid search failed, falling back to vector search: {e}")
            return self._vector_only(query, limit)

        results = self._fusion.fuse(ranked_lists, limit)

        logger.info(
            f"Search: fused {len(ranked_lists[LEXICAL])} lexical + "
            f"{len(ranked_lists[VECTOR])} vector candidates into "
            f"{len(results)}/{limit} for '{query[:50]}'"
        )
        return results

    def _vector_only(self, query: str, limit: int) -> list[FusedResult]:
        try:
            ranked = self._vector.search(query, limit)
        except Exception as e:
            logger.error(f"Vector search failed: {e}")
            raise QueryError(f"Search failed: {e}", {"query": query[:100]}) from e

        return [self._wrap(r) for r in ranked]

    @staticmethod
    def _wrap(result: RankedResult) -> FusedResult:
        return FusedResult(
            chunk=result.chunk,
            score=result.score,
            fused=False,
            ranks={VECTOR: result.rank},
        )
