"""Vector index protocol for dependency injection."""
from typing import Protocol, Sequence, runtime_checkable

from ..models.document import Chunk, RankedResult


@runtime_checkable
class VectorIndexProtocol(Protocol):
    """Protocol for persistent similarity search over chunks."""

    def build(self, chunks: Sequence[Chunk]) -> None:
        """Replace the index with embeddings of the given chunks."""
        ...

    def add(self, chunks: Sequence[Chunk]) -> None:
        """Embed and append chunks, then persist."""
        ...

    def search(self, query: str, k: int) -> list[RankedResult]:
        """Return the k most similar chunks, best first.

        Args:
            query: Search query.
            k: Number of results (> 0).

        Returns:
            Ranked results with non-increasing similarity.
        """
        ...

    def persist(self) -> None:
        """Write the current index to durable storage."""
        ...

    def load(self) -> int:
        """Load the index from durable storage, returning the chunk count."""
        ...

    def count(self) -> int:
        """Get indexed chunk count."""
        ...

    def chunks(self) -> list[Chunk]:
        """Get indexed chunks in insertion order."""
        ...
