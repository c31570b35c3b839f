"""Engine that serves precomputed score vectors.

Used to validate scores produced elsewhere (for example an accelerator run
dumped to disk with ``tools/record_scores.py``) and as a test double for the
orchestrator. ``fail_stage`` makes the named call raise :class:`EngineError`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np

from ..graph.csr import CsrGraph
from .base import EngineError, FrontierType, RankingEngine


class ReplayEngine(RankingEngine):
    """Return fixed ``hub``/``authority`` vectors through the engine contract."""

    name = "replay"

    def __init__(
        self,
        hub: Sequence[float] | np.ndarray,
        authority: Sequence[float] | np.ndarray,
        *,
        dtype: type = np.float64,
        fail_stage: str | None = None,
    ) -> None:
        self._hub = np.asarray(hub, dtype=dtype)
        self._auth = np.asarray(authority, dtype=dtype)
        if self._hub.shape != self._auth.shape:
            raise ValueError("hub and authority vectors must have the same length")
        self.fail_stage = fail_stage
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self._ready = False
        self._iterations = 0

    @classmethod
    def from_file(cls, path: str | Path, **kwargs: Any) -> "ReplayEngine":
        """Load vectors from a ``.json`` or ``.npz`` file with ``hub``/``authority``."""

        path = Path(path)
        if path.suffix == ".npz":
            with np.load(path) as data:
                return cls(data["hub"], data["authority"], **kwargs)
        data = json.loads(path.read_text())
        return cls(data["hub"], data["authority"], **kwargs)

    def _record(self, stage: str, **info: Any) -> None:
        self.calls.append((stage, info))
        if self.fail_stage == stage:
            raise EngineError(f"injected failure in {stage}", stage=stage)

    def initialize(
        self,
        forward: CsrGraph,
        reverse: CsrGraph,
        device_count: int,
        device_ids: Sequence[int],
        partition_method: str,
        partition_params: Dict[str, Any],
    ) -> None:
        self._record(
            "initialize",
            device_count=device_count,
            device_ids=list(device_ids),
            partition_method=partition_method,
        )
        if forward.num_vertices != self._hub.shape[0]:
            raise EngineError(
                f"recorded scores cover {self._hub.shape[0]} vertices, "
                f"graph has {forward.num_vertices}",
                stage="initialize",
            )
        self._ready = True

    def reset(self, src: int, delta: float, frontier_type: FrontierType) -> None:
        self._record("reset", src=src, delta=delta, frontier_type=frontier_type)
        if not self._ready:
            raise EngineError("reset called before initialize", stage="reset")
        self._iterations = 0

    def run(self, max_iter: int) -> None:
        self._record("run", max_iter=max_iter)
        self._iterations = max_iter

    def extract(self) -> Tuple[np.ndarray, np.ndarray]:
        self._record("extract")
        return self._hub.copy(), self._auth.copy()
