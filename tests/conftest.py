"""
Shared test fixtures.

Provides: deterministic fake embedder, chunk and document factories,
temporary snapshot storage and ready-made index instances.
"""

import re
import zlib
from pathlib import Path

import numpy as np
import pytest

from ensemble_search.core.exceptions import EmbeddingProviderError
from ensemble_search.core.models.document import Chunk, SourceDocument
from ensemble_search.infrastructure.lexical.bm25_index import BM25Index
from ensemble_search.infrastructure.vector_stores.local_store import LocalVectorIndex


class FakeEmbedder:
    """Bag-of-words hashing embedder; records every batch it receives."""

    def __init__(self, dim: int = 64, fail_on_call: int | None = None):
        self.dim = dim
        self.fail_on_call = fail_on_call
        self.calls: list[list[str]] = []

    def warmup(self) -> None:
        pass

    def embed(self, texts: list[str]) -> np.ndarray:
        self.calls.append(list(texts))
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise EmbeddingProviderError("quota exceeded")

        vectors = np.zeros((len(texts), self.dim), dtype=np.float32)
        for row, text in enumerate(texts):
            for token in re.findall(r"\w+", text.lower()):
                vectors[row, zlib.crc32(token.encode()) % self.dim] += 1.0
        return vectors


TOPICS = [
    "Refunds are accepted within 14 days of purchase with a receipt.",
    "Our office opens at nine in the morning on weekdays.",
    "The VPN client must be updated before connecting remotely.",
    "Printers on the third floor support double sided printing.",
    "Annual leave requests go through the HR portal.",
    "Parking permits are issued by the facilities team.",
    "Security badges must be worn visibly at all times.",
    "The cafeteria serves vegetarian meals every Friday.",
    "Expense reports require manager approval within the month.",
    "Laptops are replaced every three years by the IT department.",
]


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def storage_dir(tmp_path: Path) -> Path:
    return tmp_path / "vector-store"


@pytest.fixture
def make_chunk():
    """Factory for chunks with consistent ids."""

    def _make(
        text: str,
        source_file: str = "doc.txt",
        chunk_index: int = 0,
        total_chunks: int = 1,
    ) -> Chunk:
        return Chunk(
            id=Chunk.make_id(source_file, chunk_index),
            text=text,
            source_file=source_file,
            chunk_index=chunk_index,
            total_chunks=total_chunks,
            start_offset=0,
            end_offset=len(text),
            size_bytes=len(text),
        )

    return _make


@pytest.fixture
def topic_chunks(make_chunk) -> list[Chunk]:
    """Ten single-chunk documents on unrelated topics."""
    return [make_chunk(text, source_file=f"topic{i:02d}.txt") for i, text in enumerate(TOPICS)]


@pytest.fixture
def topic_documents() -> list[SourceDocument]:
    return [
        SourceDocument(
            name=f"topic{i:02d}.txt",
            path=Path(f"topic{i:02d}.txt"),
            text=text,
            size_bytes=len(text),
        )
        for i, text in enumerate(TOPICS)
    ]


@pytest.fixture
def vector_index(embedder: FakeEmbedder, storage_dir: Path) -> LocalVectorIndex:
    return LocalVectorIndex(embedder=embedder, storage_dir=str(storage_dir), batch_size=4)


@pytest.fixture
def lexical_index() -> BM25Index:
    return BM25Index()


@pytest.fixture
def make_embedder():
    """Factory for extra fake embedders (e.g. failing ones)."""
    return FakeEmbedder
