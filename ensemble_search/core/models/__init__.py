"""Domain models."""
from .document import Chunk, FusedResult, IngestReport, RankedResult, SourceDocument
from .engine import EngineState

__all__ = [
    "Chunk",
    "SourceDocument",
    "RankedResult",
    "FusedResult",
    "IngestReport",
    "EngineState",
]
