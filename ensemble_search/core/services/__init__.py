"""Core business services."""
from .search_service import SearchService
from .ingest_service import IngestService
from .text_splitter import ChunkingConfig, RecursiveTextSplitter

__all__ = [
    "SearchService",
    "IngestService",
    "ChunkingConfig",
    "RecursiveTextSplitter",
]
