"""NumPy HITS engine spread across emulated devices.

Vertices are partitioned across the requested device ids. Each device owns
the in-edge rows (authority update) and out-edge rows (hub update) of its
vertices and computes them with ``np.bincount`` in a worker thread. The
per-device sums of squares are reduced in device order before every
normalisation so results do not depend on thread scheduling.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
import logging
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np

from ..graph.csr import CsrGraph
from .base import EngineError, FrontierType, RankingEngine
from .logging.logger import log_record
from .partition import partition_vertices

logger = logging.getLogger(__name__)


@dataclass
class _Shard:
    """Rows owned by one device in local coordinates."""

    device: int
    owned: np.ndarray
    rev_rows: np.ndarray
    rev_cols: np.ndarray
    fwd_rows: np.ndarray
    fwd_cols: np.ndarray

    @classmethod
    def build(
        cls, device: int, owned: np.ndarray, forward: CsrGraph, reverse: CsrGraph
    ) -> "_Shard":
        n = forward.num_vertices
        local = np.full(n, -1, dtype=np.int64)
        local[owned] = np.arange(owned.shape[0])

        def _rows(graph: CsrGraph) -> Tuple[np.ndarray, np.ndarray]:
            rows = graph.row_ids()
            mask = local[rows] >= 0
            return local[rows[mask]], graph.indices[mask]

        rev_rows, rev_cols = _rows(reverse)
        fwd_rows, fwd_cols = _rows(forward)
        return cls(device, owned, rev_rows, rev_cols, fwd_rows, fwd_cols)

    def gather(
        self, rows: np.ndarray, cols: np.ndarray, src: np.ndarray, dst: np.ndarray
    ) -> float:
        partial = np.bincount(
            rows, weights=src[cols], minlength=self.owned.shape[0]
        )
        partial = partial.astype(dst.dtype, copy=False)
        dst[self.owned] = partial
        return partial.dot(partial)


class VectorizedEngine(RankingEngine):
    """Production engine computing HITS with vectorised sparse gathers.

    Parameters
    ----------
    dtype:
        Floating point type of the score vectors.
    log_events:
        When ``True`` one ``engine`` JSON-lines record is written per round.
    output_dir:
        Directory for event logs. Defaults to ``Config.output_dir``.
    run_label:
        Identifier stored on event records.
    """

    name = "vectorized"

    def __init__(
        self,
        dtype: type = np.float64,
        *,
        log_events: bool = False,
        output_dir: str | None = None,
        run_label: str | None = None,
    ) -> None:
        self.dtype = dtype
        self._log_events = log_events
        self._output_dir = output_dir
        self._run_label = run_label
        self._shards: List[_Shard] = []
        self._n = 0
        self._hub: np.ndarray | None = None
        self._auth: np.ndarray | None = None
        self._delta = 0.0
        self._frontier = FrontierType.VERTEX
        self._iterations = 0

    # ------------------------------------------------------------------
    def initialize(
        self,
        forward: CsrGraph,
        reverse: CsrGraph,
        device_count: int,
        device_ids: Sequence[int],
        partition_method: str,
        partition_params: Dict[str, Any],
    ) -> None:
        if device_count != len(device_ids):
            raise EngineError(
                f"device_count={device_count} but {len(device_ids)} device ids given",
                stage="initialize",
            )
        if forward.num_vertices != reverse.num_vertices:
            raise EngineError(
                "forward and reverse graphs have different vertex counts",
                stage="initialize",
            )
        if forward.num_edges != reverse.num_edges:
            raise EngineError(
                "forward and reverse graphs have different edge counts",
                stage="initialize",
            )
        self._n = forward.num_vertices
        parts = partition_vertices(
            forward, device_count, partition_method, partition_params
        )
        self._shards = [
            _Shard.build(dev, owned, forward, reverse)
            for dev, owned in zip(device_ids, parts)
        ]
        logger.debug(
            "Initialised %d shard(s) with sizes %s",
            len(self._shards),
            [int(s.owned.shape[0]) for s in self._shards],
        )

    def reset(self, src: int, delta: float, frontier_type: FrontierType) -> None:
        if not self._shards:
            raise EngineError("reset called before initialize", stage="reset")
        if not 0 <= src < max(self._n, 1):
            raise EngineError(f"source vertex {src} out of range", stage="reset")
        self._delta = float(delta)
        self._frontier = FrontierType(frontier_type)
        self._hub = np.ones(self._n, dtype=self.dtype)
        self._auth = np.ones(self._n, dtype=self.dtype)
        self._iterations = 0

    def _half(
        self,
        pool: ThreadPoolExecutor | None,
        side: str,
        src: np.ndarray,
        dst: np.ndarray,
    ) -> None:
        jobs = [
            (s, getattr(s, f"{side}_rows"), getattr(s, f"{side}_cols"))
            for s in self._shards
        ]
        if pool is None:
            sums = [s.gather(r, c, src, dst) for s, r, c in jobs]
        else:
            futs = [pool.submit(s.gather, r, c, src, dst) for s, r, c in jobs]
            sums = [f.result() for f in futs]
        sq = self.dtype(0)
        for part in sums:
            sq = sq + self.dtype(part)
        with np.errstate(divide="ignore", invalid="ignore"):
            dst /= np.sqrt(sq)

    def _round(self, pool: ThreadPoolExecutor | None) -> None:
        # authority from the previous hub, then hub from the new authority
        self._half(pool, "rev", self._hub, self._auth)
        self._half(pool, "fwd", self._auth, self._hub)

    def run(self, max_iter: int) -> None:
        if self._hub is None or self._auth is None:
            raise EngineError("run called before reset", stage="run")
        pool = (
            ThreadPoolExecutor(max_workers=len(self._shards))
            if len(self._shards) > 1
            else None
        )
        try:
            for it in range(max_iter):
                prev = self._hub.copy()
                self._round(pool)
                self._iterations = it + 1
                residual = float(np.max(np.abs(self._hub - prev), initial=0.0))
                if self._log_events:
                    log_record(
                        "engine",
                        "iteration",
                        run=self._run_label,
                        iteration=self._iterations,
                        value={"residual": residual},
                        output_dir=self._output_dir,
                    )
                if self._delta > 0 and residual < self._delta:
                    logger.debug(
                        "Converged after %d rounds (residual %.3g < delta %.3g)",
                        self._iterations,
                        residual,
                        self._delta,
                    )
                    break
        finally:
            if pool is not None:
                pool.shutdown()

    def extract(self) -> Tuple[np.ndarray, np.ndarray]:
        if self._hub is None or self._auth is None:
            raise EngineError("extract called before run", stage="extract")
        return self._hub.copy(), self._auth.copy()
