import logging
from functools import cached_property

import numpy as np
from sentence_transformers import SentenceTransformer

from ensemble_search.core.exceptions import EmbeddingProviderError

logger = logging.getLogger(__name__)


class SentenceTransformerEmbedder:
    def __init__(
        self,
        model_name: str = "sentence-transformers/all-mpnet-base-v2",
        batch_size: int = 32,
    ):
        self._model_name = model_name
        self._batch_size = batch_size

    @cached_property
    def model(self) -> SentenceTransformer:
        logger.info(f"Loading embedding model: {self._model_name}")
        return SentenceTransformer(self._model_name)

    def warmup(self) -> None:
        _ = self.model
        logger.info("Embedding model warmed up")

    def embed(self, texts: list[str]) -> np.ndarray:
        if not texts:
            return np.zeros((0, 0), dtype=np.float32)
        try:
            return self.model.encode(
                texts, batch_size=self._batch_size, convert_to_numpy=True
            )
        except Exception as e:
            raise EmbeddingProviderError(
                f"Local embedding failed: {e}", {"model": self._model_name}
            ) from e
