"""Embedder protocol for dependency injection."""
from typing import Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class EmbedderProtocol(Protocol):
    """Protocol for embedding providers."""

    def embed(self, texts: list[str]) -> np.ndarray:
        """Embed texts to fixed-length vectors.

        Args:
            texts: Texts to embed.

        Returns:
            Array of shape (len(texts), dim), same order as input.

        Raises:
            EmbeddingProviderError: On transport, quota or format failure.
        """
        ...

    def warmup(self) -> None:
        """Prepare the provider (load model, open connection)."""
        ...
