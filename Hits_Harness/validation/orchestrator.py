"""Validation run orchestration.

:func:`run_validation` walks a linear sequence of states::

    CONFIGURED -> REFERENCE_COMPUTED -> ENGINE_PREPARED -> ENGINE_EXECUTED
               -> EXTRACTED -> COMPARED -> REPORTED

``REFERENCE_COMPUTED`` and ``COMPARED`` are skipped in quick mode. Engine
calls are issued one at a time; any failure aborts the run with an
:class:`~Hits_Harness.engine.base.EngineError` and nothing is compared.
"""

from __future__ import annotations

import logging
import sys
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import IO, Any, Callable, Dict, List, Tuple

import numpy as np

from invariants import checks

from ..config import RunConfig
from ..engine.base import EngineError, RankingEngine
from ..engine.logging.logger import flush_metrics, log_record
from ..engine.reference import hits_reference
from ..graph.csr import GraphView
from .compare import compare_results
from .topk import RankingPair, format_top_k, top_k

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    CONFIGURED = "configured"
    REFERENCE_COMPUTED = "reference_computed"
    ENGINE_PREPARED = "engine_prepared"
    ENGINE_EXECUTED = "engine_executed"
    EXTRACTED = "extracted"
    COMPARED = "compared"
    REPORTED = "reported"


@dataclass
class RunStats:
    """Statistics record produced by one validation run.

    Times are wall-clock seconds. ``elapsed`` is the engine compute time
    averaged over ``num_runs``; ``preprocess_time`` covers engine
    initialisation and reset and ``postprocess_time`` extraction,
    comparison and ranking.
    """

    run_id: str
    graph: str
    engine: str
    num_vertices: int
    num_edges: int
    config: Dict[str, Any]
    iterations: int = 0
    reference_time: float | None = None
    preprocess_time: float = 0.0
    elapsed: float = 0.0
    postprocess_time: float = 0.0
    total_time: float = 0.0
    hub_mismatches: int | None = None
    authority_mismatches: int | None = None
    top_hub: List[RankingPair] = field(default_factory=list)
    top_authority: List[RankingPair] = field(default_factory=list)
    invariants: Dict[str, bool] = field(default_factory=dict)
    states: List[str] = field(default_factory=list)

    @property
    def num_errors(self) -> int:
        return (self.hub_mismatches or 0) + (self.authority_mismatches or 0)

    @property
    def validation(self) -> str:
        if self.hub_mismatches is None:
            return "UNVALIDATED"
        return "PASS" if self.num_errors == 0 else "FAIL"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "graph": self.graph,
            "engine": self.engine,
            "num_vertices": self.num_vertices,
            "num_edges": self.num_edges,
            "config": dict(self.config),
            "iterations": self.iterations,
            "reference_time": self.reference_time,
            "preprocess_time": self.preprocess_time,
            "elapsed": self.elapsed,
            "postprocess_time": self.postprocess_time,
            "total_time": self.total_time,
            "hub_mismatches": self.hub_mismatches,
            "authority_mismatches": self.authority_mismatches,
            "num_errors": self.num_errors,
            "validation": self.validation,
            "top_hub": [list(p) for p in self.top_hub],
            "top_authority": [list(p) for p in self.top_authority],
            "invariants": dict(self.invariants),
            "states": list(self.states),
        }


def _engine_call(stage: str, fn: Callable[..., Any], *args: Any) -> Any:
    try:
        return fn(*args)
    except Exception as exc:
        err = EngineError.wrap(stage, exc)
        logger.error("Engine %s failed: %s", stage, err)
        if err is exc:
            raise
        raise err from exc


def _extract(
    engine: RankingEngine, num_vertices: int
) -> Tuple[np.ndarray, np.ndarray]:
    hub, auth = engine.extract()
    hub = np.asarray(hub)
    auth = np.asarray(auth)
    if hub.shape[0] != num_vertices or auth.shape[0] != num_vertices:
        raise EngineError(
            f"engine returned {hub.shape[0]}/{auth.shape[0]} scores for "
            f"{num_vertices} vertices",
            stage="extract",
        )
    return hub, auth


def run_validation(
    graph: GraphView,
    engine: RankingEngine,
    cfg: RunConfig,
    *,
    run_id: str | None = None,
    out: IO[str] | None = None,
) -> RunStats:
    """Validate ``engine`` against the reference HITS scores on ``graph``.

    Parameters
    ----------
    graph:
        Forward graph and transpose, validated before anything runs.
    engine:
        Engine under test.
    cfg:
        Settings for this run.
    run_id:
        Identifier stored on the statistics and event records.
    out:
        Stream for narrative output; defaults to ``sys.stdout``.

    Raises
    ------
    EngineError
        When any engine call fails. No comparison is attempted.
    ValueError
        When ``graph`` is malformed.
    """

    out = out or sys.stdout
    run_id = run_id or uuid.uuid4().hex[:12]
    t_start = time.perf_counter()

    def say(*lines: str) -> None:
        if not cfg.quiet:
            for line in lines:
                print(line, file=out)

    stats = RunStats(
        run_id=run_id,
        graph=graph.name,
        engine=getattr(engine, "name", type(engine).__name__),
        num_vertices=graph.num_vertices,
        num_edges=graph.num_edges,
        config=cfg.to_dict(),
    )

    def enter(state: RunState, **info: Any) -> None:
        stats.states.append(state.value)
        logger.debug("run %s -> %s", run_id, state.value)
        if cfg.log_events:
            log_record(
                "run", state.value, run=run_id, value=info, output_dir=cfg.output_dir
            )

    graph.validate()
    enter(RunState.CONFIGURED, graph=graph.name, engine=stats.engine)

    ref_hub: np.ndarray | None = None
    ref_auth: np.ndarray | None = None
    if not cfg.quick:
        say("Computing reference value ...")
        t0 = time.perf_counter()
        ref_hub, ref_auth = hits_reference(
            graph.forward, graph.reverse, cfg.max_iter, cfg.dtype
        )
        stats.reference_time = time.perf_counter() - t0
        say(f"CPU Elapsed: {stats.reference_time * 1000:.4f} ms")
        enter(RunState.REFERENCE_COMPUTED, elapsed=stats.reference_time)

    t0 = time.perf_counter()
    _engine_call(
        "initialize",
        engine.initialize,
        graph.forward,
        graph.reverse,
        len(cfg.device),
        list(cfg.device),
        cfg.partition_method,
        cfg.partition_params,
    )
    init_time = time.perf_counter() - t0
    frontier = _engine_call("frontier_type_hint", engine.frontier_type_hint)
    enter(RunState.ENGINE_PREPARED, elapsed=init_time)

    reset_total = 0.0
    run_total = 0.0
    for i in range(cfg.num_runs):
        t0 = time.perf_counter()
        _engine_call("reset", engine.reset, cfg.src, cfg.delta, frontier)
        t1 = time.perf_counter()
        _engine_call("run", engine.run, cfg.max_iter)
        t2 = time.perf_counter()
        reset_total += t1 - t0
        run_total += t2 - t1
        logger.debug("run %s pass %d: %.6f s", run_id, i, t2 - t1)
    stats.preprocess_time = init_time + reset_total / cfg.num_runs
    stats.elapsed = run_total / cfg.num_runs
    stats.iterations = engine.iterations
    say(f"{stats.engine} Elapsed: {stats.elapsed * 1000:.4f} ms")
    enter(
        RunState.ENGINE_EXECUTED, elapsed=stats.elapsed, iterations=stats.iterations
    )

    t_post = time.perf_counter()
    hub, auth = _engine_call("extract", _extract, engine, graph.num_vertices)
    enter(RunState.EXTRACTED)

    if ref_hub is not None and ref_auth is not None:
        say("Validating result ...")
        stats.hub_mismatches = compare_results(
            hub,
            ref_hub,
            cfg.error_threshold,
            verbose=cfg.verbose,
            quiet=cfg.quiet,
            label="hub",
            out=out,
        )
        if not cfg.hub_only:
            stats.authority_mismatches = compare_results(
                auth,
                ref_auth,
                cfg.error_threshold,
                verbose=cfg.verbose,
                quiet=cfg.quiet,
                label="authority",
                out=out,
            )
        say(f"{stats.num_errors} errors occurred. {stats.validation}")
        enter(
            RunState.COMPARED,
            hub_mismatches=stats.hub_mismatches,
            authority_mismatches=stats.authority_mismatches,
        )

    stats.top_hub = top_k(hub, cfg.top_k)
    stats.top_authority = top_k(auth, cfg.top_k)
    say(*format_top_k(stats.top_hub, "hub rank"))
    say(*format_top_k(stats.top_authority, "authority rank"))
    tolerance = 1e-3 if np.dtype(cfg.dtype) == np.float32 else 1e-6
    stats.invariants = checks.from_vectors(hub, auth, tolerance)
    del hub, auth, ref_hub, ref_auth

    stats.postprocess_time = time.perf_counter() - t_post
    stats.total_time = time.perf_counter() - t_start
    enter(RunState.REPORTED, validation=stats.validation, total_time=stats.total_time)
    if cfg.log_events:
        flush_metrics(run_id, cfg.output_dir)
    if stats.num_errors:
        logger.warning(
            "run %s on %s: %d divergent scores", run_id, graph.name, stats.num_errors
        )
    return stats
