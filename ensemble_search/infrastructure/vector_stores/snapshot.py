"""On-disk schema of the corpus snapshot."""
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ensemble_search.core.models.document import Chunk

SCHEMA_VERSION = 1


class ChunkMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source_file: str = Field(alias="sourceFile", min_length=1)
    chunk_index: int = Field(alias="chunkIndex", ge=0)
    total_chunks: int = Field(alias="totalChunks", ge=1)
    size_bytes: int = Field(default=0, alias="sizeBytes", ge=0)
    last_modified: Optional[datetime] = Field(default=None, alias="lastModified")
    chunk_start: int = Field(default=0, alias="chunkStart", ge=0)
    chunk_end: int = Field(default=0, alias="chunkEnd", ge=0)

    @model_validator(mode="after")
    def _check_position(self) -> "ChunkMetadata":
        if self.chunk_index >= self.total_chunks:
            raise ValueError("chunkIndex must be below totalChunks")
        return self


class SnapshotRecord(BaseModel):
    """One indexed chunk with its embedding."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    page_content: str = Field(alias="pageContent", min_length=1)
    metadata: ChunkMetadata
    embedding: list[float] = Field(min_length=1)

    @classmethod
    def from_chunk(cls, chunk: Chunk, embedding: list[float]) -> "SnapshotRecord":
        return cls(
            id=chunk.id,
            page_content=chunk.text,
            metadata=ChunkMetadata(
                source_file=chunk.source_file,
                chunk_index=chunk.chunk_index,
                total_chunks=chunk.total_chunks,
                size_bytes=chunk.size_bytes,
                last_modified=chunk.last_modified,
                chunk_start=chunk.start_offset,
                chunk_end=chunk.end_offset,
            ),
            embedding=embedding,
        )

    def to_chunk(self) -> Chunk:
        meta = self.metadata
        return Chunk(
            id=self.id,
            text=self.page_content,
            source_file=meta.source_file,
            chunk_index=meta.chunk_index,
            total_chunks=meta.total_chunks,
            start_offset=meta.chunk_start,
            end_offset=meta.chunk_end,
            size_bytes=meta.size_bytes,
            last_modified=meta.last_modified,
        )


class SnapshotEnvelope(BaseModel):
    """File header. Records are validated one by one so a bad record
    does not discard the whole snapshot."""
    model_config = ConfigDict(populate_by_name=True)

    schema_version: Literal[1] = Field(alias="schemaVersion")
    dimension: int = Field(ge=0)
    records: list[Any]
