"""Ranking engines: the reference implementation and engines under test."""

from .base import EngineError, FrontierType, RankingEngine
from .reference import hits_reference
from .replay import ReplayEngine
from .vectorized import VectorizedEngine

ENGINES = {
    VectorizedEngine.name: VectorizedEngine,
    ReplayEngine.name: ReplayEngine,
}

__all__ = [
    "ENGINES",
    "EngineError",
    "FrontierType",
    "RankingEngine",
    "ReplayEngine",
    "VectorizedEngine",
    "hits_reference",
]
