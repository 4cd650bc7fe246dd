"""Rank fusion strategies."""
from .fusion import LEXICAL, VECTOR, FusionStrategy, ReciprocalRankFusion

__all__ = [
    "FusionStrategy",
    "ReciprocalRankFusion",
    "LEXICAL",
    "VECTOR",
]
