"""Exception hierarchy for the retrieval engine.

Every error carries a human-readable message plus an optional ``details``
dict with context for logs.
"""

from typing import Any


class EnsembleSearchError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize error.

        Args:
            message: Human-readable error message.
            details: Optional context for debugging.
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ChunkingConfigError(EnsembleSearchError):
    """Raised when chunk size, overlap or separators are invalid."""


class EmbeddingProviderError(EnsembleSearchError):
    """Raised when the embedding provider is unreachable or misbehaves."""


class EmbeddingTimeoutError(EmbeddingProviderError):
    """Raised when an embedding request exceeds its timeout."""


class IndexBuildError(EnsembleSearchError):
    """Raised when the fused index cannot be initialized."""


class PersistenceError(EnsembleSearchError):
    """Raised on read/write failures against the snapshot store."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize persistence error.

        Args:
            message: Error message.
            path: Snapshot file involved.
            details: Additional context.
        """
        details = details or {}
        if path:
            details["path"] = path
        super().__init__(message, details)


class QueryError(EnsembleSearchError):
    """Raised when no retrieval signal could answer a query."""
