"""Capability interface implemented by ranking engines under validation."""

from __future__ import annotations

import traceback
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Sequence, Tuple

import numpy as np

from ..graph.csr import CsrGraph


class FrontierType(str, Enum):
    """Kind of frontier an engine traverses in one round."""

    VERTEX = "vertex"
    EDGE = "edge"
    MIXED = "mixed"


class EngineError(RuntimeError):
    """Failure reported by an engine call.

    Parameters
    ----------
    message:
        Human readable description.
    stage:
        Engine call that failed: ``initialize``, ``reset``, ``run`` or
        ``extract``.
    location:
        ``file:line`` of the frame that raised. Filled from the current
        traceback when omitted.
    """

    def __init__(
        self, message: str, *, stage: str | None = None, location: str | None = None
    ) -> None:
        super().__init__(message)
        self.stage = stage
        self.location = location

    def __str__(self) -> str:
        text = super().__str__()
        if self.stage:
            text = f"[{self.stage}] {text}"
        if self.location:
            text = f"{text} ({self.location})"
        return text

    @classmethod
    def wrap(cls, stage: str, exc: BaseException) -> "EngineError":
        """Return an :class:`EngineError` describing ``exc`` raised in ``stage``."""

        if isinstance(exc, EngineError):
            if exc.stage is None:
                exc.stage = stage
            if exc.location is None:
                exc.location = _location(exc)
            return exc
        return cls(
            f"{type(exc).__name__}: {exc}", stage=stage, location=_location(exc)
        )


def _location(exc: BaseException) -> str | None:
    frames = traceback.extract_tb(exc.__traceback__)
    if not frames:
        return None
    last = frames[-1]
    return f"{last.filename}:{last.lineno}"


class RankingEngine(ABC):
    """Four-call contract the orchestrator drives.

    Calls are issued in order ``initialize`` -> ``reset`` -> ``run`` ->
    ``extract`` and never concurrently. ``reset`` followed by ``run`` may be
    repeated to average timings.
    """

    name = "engine"

    @abstractmethod
    def initialize(
        self,
        forward: CsrGraph,
        reverse: CsrGraph,
        device_count: int,
        device_ids: Sequence[int],
        partition_method: str,
        partition_params: Dict[str, Any],
    ) -> None:
        """Take a read-only view of the graph and prepare device state."""

    @abstractmethod
    def reset(self, src: int, delta: float, frontier_type: FrontierType) -> None:
        """Restore initial scores before a run."""

    @abstractmethod
    def run(self, max_iter: int) -> None:
        """Execute up to ``max_iter`` rounds."""

    @abstractmethod
    def extract(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return host copies of ``(hub, authority)``."""

    def frontier_type_hint(self) -> FrontierType:
        return FrontierType.VERTEX

    @property
    def iterations(self) -> int:
        """Rounds executed by the most recent :meth:`run`."""
        return getattr(self, "_iterations", 0)
