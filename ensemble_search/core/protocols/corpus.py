"""Corpus source protocol for dependency injection."""
from typing import Iterator, Protocol, runtime_checkable

from ..models.document import SourceDocument


@runtime_checkable
class CorpusSourceProtocol(Protocol):
    """Protocol for reading raw documents."""

    def documents(self) -> Iterator[SourceDocument]:
        """Yield every readable document in the corpus."""
        ...
