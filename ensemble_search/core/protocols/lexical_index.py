"""Lexical index protocol for dependency injection."""
from typing import Protocol, Sequence, runtime_checkable

from ..models.document import Chunk, RankedResult


@runtime_checkable
class LexicalIndexProtocol(Protocol):
    """Protocol for keyword-ranked search over chunks."""

    def build(self, chunks: Sequence[Chunk]) -> None:
        """Compute term statistics for the chunk set."""
        ...

    def search(self, query: str, k: int) -> list[RankedResult]:
        """Return up to k chunks ranked by keyword relevance."""
        ...

    def count(self) -> int:
        """Get indexed chunk count."""
        ...
