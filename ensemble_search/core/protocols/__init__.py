"""Protocol interfaces for dependency injection."""
from .corpus import CorpusSourceProtocol
from .embedder import EmbedderProtocol
from .lexical_index import LexicalIndexProtocol
from .vector_index import VectorIndexProtocol

__all__ = [
    "EmbedderProtocol",
    "VectorIndexProtocol",
    "LexicalIndexProtocol",
    "CorpusSourceProtocol",
]
