import json
import logging
import os
import tempfile
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

import numpy as np
from pydantic import ValidationError

from ensemble_search.core.exceptions import EmbeddingProviderError, PersistenceError
from ensemble_search.core.models.document import Chunk, RankedResult
from ensemble_search.core.protocols.embedder import EmbedderProtocol

from .snapshot import SCHEMA_VERSION, SnapshotEnvelope, SnapshotRecord

logger = logging.getLogger(__name__)


def _empty_matrix() -> np.ndarray:
    return np.zeros((0, 0), dtype=np.float32)


@dataclass(frozen=True)
class _IndexState:
    chunks: tuple[Chunk, ...] = ()
    vectors: np.ndarray = field(default_factory=_empty_matrix)
    normalized: np.ndarray = field(default_factory=_empty_matrix)

    @classmethod
    def of(cls, chunks: tuple[Chunk, ...], vectors: np.ndarray) -> "_IndexState":
        if not chunks:
            return cls()
        norms = np.linalg.norm(vectors, axis=1, keepdims=True)
        norms[norms == 0] = 1.0
        return cls(chunks=chunks, vectors=vectors, normalized=vectors / norms)

    @property
    def dimension(self) -> int:
        return int(self.vectors.shape[1]) if self.chunks else 0


class LocalVectorIndex:
    """Cosine similarity index persisted as a JSON snapshot.

    Search is exact (brute force over a normalized numpy matrix). Writers
    hold a lock around mutate + persist; readers grab the current immutable
    state, so a query never sees a half-applied update.
    """

    SNAPSHOT_FILE = "snapshot.json"

    def __init__(
        self,
        embedder: EmbedderProtocol,
        storage_dir: str = "./data/vector-store",
        batch_size: int = 50,
        passage_prefix: str = "",
        query_prefix: str = "",
    ):
        """Initialize index.

        Args:
            embedder: Embedding provider.
            storage_dir: Directory holding the snapshot file.
            batch_size: Texts per embedding call.
            passage_prefix: Prefix for chunk texts (e.g. "passage: " for E5).
            query_prefix: Prefix for queries (e.g. "query: " for E5).
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self._embedder = embedder
        self._storage_dir = Path(storage_dir)
        self._batch_size = batch_size
        self._passage_prefix = passage_prefix
        self._query_prefix = query_prefix

        self._state = _IndexState()
        self._write_lock = threading.Lock()

    @property
    def snapshot_path(self) -> Path:
        return self._storage_dir / self.SNAPSHOT_FILE

    def _embed(self, texts: list[str], prefix: str) -> np.ndarray:
        """Embed texts in batches. Nothing is stored if any batch fails."""
        batches = []
        for start in range(0, len(texts), self._batch_size):
            batch = [f"{prefix}{t}" for t in texts[start : start + self._batch_size]]
            try:
                vectors = np.asarray(self._embedder.embed(batch), dtype=np.float32)
            except EmbeddingProviderError:
                raise
            except Exception as e:
                raise EmbeddingProviderError(
                    f"Embedding provider failed: {e}", {"batch_start": start}
                ) from e

            if vectors.ndim != 2 or vectors.shape[0] != len(batch) or vectors.shape[1] == 0:
                raise EmbeddingProviderError(
                    "Malformed embedding response",
                    {"expected_rows": len(batch), "shape": list(vectors.shape)},
                )
            if batches and vectors.shape[1] != batches[0].shape[1]:
                raise EmbeddingProviderError(
                    "Embedding dimension changed between batches",
                    {"expected": batches[0].shape[1], "got": vectors.shape[1]},
                )

            batches.append(vectors)
            if len(texts) > self._batch_size:
                done = min(start + self._batch_size, len(texts))
                logger.info(f"Embedded batch: {done}/{len(texts)}")

        return np.vstack(batches)

    @staticmethod
    def _check_unique(chunks: Sequence[Chunk], existing: Sequence[Chunk] = ()) -> None:
        seen = {c.id for c in existing}
        for chunk in chunks:
            if chunk.id in seen:
                raise ValueError(f"Duplicate chunk id: {chunk.id}")
            seen.add(chunk.id)

    def build(self, chunks: Sequence[Chunk]) -> None:
        """Replace the index with the given chunks.

        Raises:
            EmbeddingProviderError: If any embedding call fails. The previous
                index and snapshot are left untouched.
            PersistenceError: If the snapshot cannot be written.
        """
        chunks = tuple(chunks)
        self._check_unique(chunks)

        vectors = (
            self._embed([c.text for c in chunks], self._passage_prefix)
            if chunks
            else _empty_matrix()
        )

        with self._write_lock:
            self._commit(_IndexState.of(chunks, vectors))

        logger.info(f"Vector index built: {len(chunks)} chunks")

    def add(self, chunks: Sequence[Chunk]) -> None:
        """Embed and append chunks without touching existing entries."""
        chunks = tuple(chunks)
        if not chunks:
            return

        self._check_unique(chunks, self._state.chunks)
        vectors = self._embed([c.text for c in chunks], self._passage_prefix)

        with self._write_lock:
            current = self._state
            self._check_unique(chunks, current.chunks)

            if current.chunks:
                if current.dimension != vectors.shape[1]:
                    raise EmbeddingProviderError(
                        "Embedding dimension does not match the index",
                        {"expected": current.dimension, "got": vectors.shape[1]},
                    )
                merged = np.vstack([current.vectors, vectors])
            else:
                merged = vectors

            self._commit(_IndexState.of(current.chunks + chunks, merged))

        logger.info(f"Added {len(chunks)} chunks to vector index and saved snapshot")

    def _commit(self, state: _IndexState) -> None:
        """Persist then publish. Caller holds the write lock."""
        self._write_snapshot(state)
        self._state = state

    def search(self, query: str, k: int) -> list[RankedResult]:
        """Search by cosine similarity."""
        if k <= 0:
            raise ValueError(f"k must be positive, got {k}")

        state = self._state
        if not state.chunks:
            return []

        query_vector = self._embed([query], self._query_prefix)[0]
        if query_vector.shape[0] != state.dimension:
            raise EmbeddingProviderError(
                "Query embedding dimension does not match the index",
                {"expected": state.dimension, "got": int(query_vector.shape[0])},
            )

        norm = np.linalg.norm(query_vector)
        if norm > 0:
            query_vector = query_vector / norm

        similarities = state.normalized @ query_vector
        order = np.argsort(-similarities, kind="stable")[:k]

        return [
            RankedResult(chunk=state.chunks[i], rank=rank, score=float(similarities[i]))
            for rank, i in enumerate(order, 1)
        ]

    def persist(self) -> None:
        with self._write_lock:
            self._write_snapshot(self._state)

    def _write_snapshot(self, state: _IndexState) -> None:
        records = [
            SnapshotRecord.from_chunk(chunk, vector).model_dump(by_alias=True, mode="json")
            for chunk, vector in zip(state.chunks, state.vectors.tolist())
        ]
        envelope = SnapshotEnvelope(
            schema_version=SCHEMA_VERSION, dimension=state.dimension, records=records
        )
        payload = envelope.model_dump_json(by_alias=True)

        path = self.snapshot_path
        try:
            self._storage_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._storage_dir, prefix=".snapshot-", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(f"Failed to write snapshot: {e}", path=str(path)) from e

    def load(self) -> int:
        """Load the snapshot from disk.

        A missing file means an empty store. A malformed file is moved aside
        and the index starts empty.

        Returns:
            Number of chunks loaded.
        """
        path = self.snapshot_path
        with self._write_lock:
            if not path.exists():
                logger.info(f"No snapshot at {path}, starting with empty index")
                self._state = _IndexState()
                return 0

            try:
                state = self._read_snapshot(path)
            except PersistenceError as e:
                logger.warning(f"Snapshot unreadable, starting with empty index: {e}")
                self._quarantine(path)
                state = _IndexState()

            self._state = state

        logger.info(f"Loaded vector index: {len(state.chunks)} chunks")
        return len(state.chunks)

    def _read_snapshot(self, path: Path) -> _IndexState:
        try:
            envelope = SnapshotEnvelope.model_validate(
                json.loads(path.read_text(encoding="utf-8"))
            )
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Malformed snapshot: {e}", path=str(path)) from e

        chunks: list[Chunk] = []
        vectors: list[list[float]] = []
        seen: set[str] = set()

        for position, item in enumerate(envelope.records):
            try:
                record = SnapshotRecord.model_validate(item)
            except ValidationError as e:
                logger.warning(
                    f"Skipping malformed snapshot record #{position}: "
                    f"{e.error_count()} validation error(s)"
                )
                continue

            if len(record.embedding) != envelope.dimension:
                logger.warning(f"Skipping record {record.id}: wrong embedding dimension")
                continue
            if record.id in seen:
                logger.warning(f"Skipping duplicate record {record.id}")
                continue

            seen.add(record.id)
            chunks.append(record.to_chunk())
            vectors.append(record.embedding)

        if not chunks:
            return _IndexState()
        return _IndexState.of(tuple(chunks), np.asarray(vectors, dtype=np.float32))

    def _quarantine(self, path: Path) -> None:
        target = path.with_name(f"{path.name}.corrupt-{int(time.time())}")
        try:
            os.replace(path, target)
            logger.warning(f"Moved unreadable snapshot to {target}")
        except OSError as e:
            logger.error(f"Failed to move unreadable snapshot {path}: {e}")

    def count(self) -> int:
        return len(self._state.chunks)

    def chunks(self) -> list[Chunk]:
        return list(self._state.chunks)
