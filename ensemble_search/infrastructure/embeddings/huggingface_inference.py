import logging
from typing import Optional

import httpx
import numpy as np

from ensemble_search.core.exceptions import EmbeddingProviderError, EmbeddingTimeoutError

logger = logging.getLogger(__name__)


class HuggingFaceInferenceEmbedder:
    """Embedder using the hosted Hugging Face feature-extraction API."""

    def __init__(
        self,
        model_name: str = "sentence-transformers/all-mpnet-base-v2",
        api_key: Optional[str] = None,
        base_url: str = "https://router.huggingface.co/hf-inference/models",
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize embedder.

        Args:
            model_name: Hub model id.
            api_key: Hugging Face access token.
            base_url: Inference endpoint root.
            timeout: Per-request timeout in seconds.
            transport: Custom httpx transport (tests).
        """
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._model_name = model_name
        self._url = f"{base_url.rstrip('/')}/{model_name}/pipeline/feature-extraction"
        self._client = httpx.Client(headers=headers, timeout=timeout, transport=transport)

    def warmup(self) -> None:
        self.embed(["warmup"])
        logger.info(f"Inference endpoint ready: {self._model_name}")

    def embed(self, texts: list[str]) -> np.ndarray:
        if not texts:
            return np.zeros((0, 0), dtype=np.float32)

        try:
            resp = self._client.post(
                self._url,
                json={"inputs": texts, "options": {"wait_for_model": True}},
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.TimeoutException as e:
            raise EmbeddingTimeoutError(
                f"Embedding request timed out: {e}", {"model": self._model_name}
            ) from e
        except httpx.HTTPStatusError as e:
            raise EmbeddingProviderError(
                f"Embedding request failed with status {e.response.status_code}",
                {"model": self._model_name, "body": e.response.text[:200]},
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise EmbeddingProviderError(
                f"Embedding request failed: {e}", {"model": self._model_name}
            ) from e

        try:
            vectors = np.asarray(data, dtype=np.float32)
        except (TypeError, ValueError) as e:
            raise EmbeddingProviderError("Malformed embedding response") from e

        if vectors.ndim != 2 or vectors.shape[0] != len(texts):
            raise EmbeddingProviderError(
                "Malformed embedding response",
                {"expected_rows": len(texts), "shape": list(vectors.shape)},
            )
        return vectors

    def close(self) -> None:
        self._client.close()
