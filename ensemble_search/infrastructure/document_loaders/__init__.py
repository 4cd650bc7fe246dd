"""Corpus sources."""
from .directory_corpus import READERS, DirectoryCorpus

__all__ = ["DirectoryCorpus", "READERS"]
