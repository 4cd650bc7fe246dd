"""
Tests for HuggingFaceInferenceEmbedder using httpx.MockTransport.
"""

import json

import httpx
import numpy as np
import pytest

from ensemble_search.core.exceptions import EmbeddingProviderError, EmbeddingTimeoutError
from ensemble_search.infrastructure.embeddings.huggingface_inference import (
    HuggingFaceInferenceEmbedder,
)


def _embedder(handler, **kwargs) -> HuggingFaceInferenceEmbedder:
    return HuggingFaceInferenceEmbedder(
        model_name="org/model",
        base_url="https://inference.test/models/",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestHuggingFaceInferenceEmbedder:
    """Test request shape and error mapping."""

    def test_returns_matrix(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=[[0.1, 0.2, 0.3], [0.4, 0.5, 0.6]])

        vectors = _embedder(handler, api_key="hf_secret").embed(["one", "two"])

        assert vectors.shape == (2, 3)
        assert vectors.dtype == np.float32
        assert seen["url"] == "https://inference.test/models/org/model/pipeline/feature-extraction"
        assert seen["auth"] == "Bearer hf_secret"
        assert seen["body"] == {"inputs": ["one", "two"], "options": {"wait_for_model": True}}

    def test_empty_input_skips_request(self):
        def handler(request):
            raise AssertionError("no request expected")

        assert _embedder(handler).embed([]).shape == (0, 0)

    def test_timeout_maps_to_timeout_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(EmbeddingTimeoutError):
            _embedder(handler).embed(["slow"])

    def test_http_error_maps_to_provider_error(self):
        def handler(request):
            return httpx.Response(429, text="rate limited")

        with pytest.raises(EmbeddingProviderError) as exc_info:
            _embedder(handler).embed(["text"])

        assert not isinstance(exc_info.value, EmbeddingTimeoutError)
        assert "429" in exc_info.value.message
        assert exc_info.value.details["body"] == "rate limited"

    def test_connection_error_maps_to_provider_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(EmbeddingProviderError):
            _embedder(handler).embed(["text"])

    @pytest.mark.parametrize(
        "payload",
        [
            {"error": "model loading"},
            [[0.1, 0.2]],
            [[[0.1, 0.2]], [[0.3, 0.4]]],
        ],
    )
    def test_malformed_payload_rejected(self, payload):
        def handler(request):
            return httpx.Response(200, json=payload)

        with pytest.raises(EmbeddingProviderError):
            _embedder(handler).embed(["one", "two"])

    def test_non_json_body_rejected(self):
        def handler(request):
            return httpx.Response(200, text="<html>gateway</html>")

        with pytest.raises(EmbeddingProviderError):
            _embedder(handler).embed(["one"])
