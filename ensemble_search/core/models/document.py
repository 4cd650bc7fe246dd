"""Document domain models."""
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional


@dataclass
class SourceDocument:
    """Raw document read from the corpus."""
    name: str
    path: Path
    text: str
    size_bytes: int = 0
    last_modified: Optional[datetime] = None


@dataclass(frozen=True)
class Chunk:
    """Retrievable slice of a source document."""
    id: str
    text: str
    source_file: str
    chunk_index: int
    total_chunks: int
    start_offset: int = 0
    end_offset: int = 0
    size_bytes: int = 0
    last_modified: Optional[datetime] = None

    @staticmethod
    def make_id(source_file: str, chunk_index: int) -> str:
        return f"{source_file}:{chunk_index}"


@dataclass
class RankedResult:
    """Result of a single index for one query."""
    chunk: Chunk
    rank: int  # 1-based
    score: float


@dataclass
class FusedResult:
    """Result returned by the search service."""
    chunk: Chunk
    score: float
    fused: bool = True  # False for vector-only fallback results
    ranks: dict[str, int] = field(default_factory=dict)

    @property
    def source_file(self) -> str:
        return self.chunk.source_file


@dataclass
class IngestReport:
    """Outcome of an ingestion run."""
    chunk_count: int
    document_count: int
    skipped: bool = False
