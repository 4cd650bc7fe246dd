"""Engine lifecycle models."""
from enum import Enum


class EngineState(Enum):
    """Lifecycle state of the search engine."""
    UNINITIALIZED = "uninitialized"  # vector-only fallback
    READY = "ready"                  # lexical + vector fusion
