"""Sweep runner validating many graph/configuration combinations.

The sweep file (YAML or TOML) lists graphs and the settings to vary::

    graphs: [graphs/web.mtx, graphs/cite.json]
    max_iter: [10, 50]
    precision: [float32, float64]
    device: [[0], [0, 1]]
    error_threshold: 0.05

Every combination becomes an independent run with its own graph and score
vectors, so runs may execute in a thread or process pool. Results are
logged in a deterministic order regardless of completion order.
"""

from __future__ import annotations

import argparse
import itertools
import logging
import pathlib
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Tuple

from Hits_Harness.config import RunConfig
from Hits_Harness.engine.vectorized import VectorizedEngine
from Hits_Harness.graph.loader import load_graph
from Hits_Harness.validation.orchestrator import run_validation
from telemetry.metrics import StatsLogger, write_stats_json

logger = logging.getLogger(__name__)

_SWEPT = ("max_iter", "precision", "device")


def _as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else [value]


@dataclass
class SweepConfig:
    """Container for sweep configuration."""

    graphs: List[pathlib.Path]
    max_iter: List[int] = field(default_factory=lambda: [50])
    precision: List[str] = field(default_factory=lambda: ["float64"])
    device: List[Tuple[int, ...]] = field(default_factory=lambda: [(0,)])
    settings: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(
        cls, data: Dict[str, Any], base_dir: pathlib.Path | None = None
    ) -> "SweepConfig":
        """Construct a :class:`SweepConfig` from a generic mapping.

        Parameters
        ----------
        data:
            Mapping containing sweep fields.
        base_dir:
            Directory relative graph paths are resolved against.

        Raises
        ------
        KeyError
            If ``graphs`` is missing.
        """

        if "graphs" not in data:
            raise KeyError("Sweep configuration missing keys: graphs")
        base_dir = base_dir or pathlib.Path.cwd()
        graphs = [
            p if p.is_absolute() else base_dir / p
            for p in (pathlib.Path(g) for g in _as_list(data["graphs"]))
        ]
        devices = data.get("device", [[0]])
        if devices and isinstance(devices, list) and isinstance(devices[0], int):
            devices = [devices]
        settings = {
            k: v for k, v in data.items() if k not in {"graphs", *_SWEPT}
        }
        return cls(
            graphs=graphs,
            max_iter=[int(v) for v in _as_list(data.get("max_iter", 50))],
            precision=[str(v) for v in _as_list(data.get("precision", "float64"))],
            device=[tuple(d) for d in _as_list(devices)],
            settings=settings,
        )

    def jobs(self) -> List[Tuple[pathlib.Path, Dict[str, Any]]]:
        """Return ``(graph, overrides)`` for every combination in stable order."""

        out = []
        for graph, max_iter, precision, device in itertools.product(
            self.graphs, self.max_iter, self.precision, self.device
        ):
            overrides = dict(self.settings)
            overrides.update(
                {"max_iter": max_iter, "precision": precision, "device": device}
            )
            out.append((graph, overrides))
        return out


def _process_job(
    i: int, graph_path: pathlib.Path, overrides: Dict[str, Any]
) -> Tuple[int, Dict[str, Any]]:
    """Validate one combination and return its statistics record."""

    cfg = RunConfig.from_mapping({"quiet": True, **overrides})
    graph = load_graph(graph_path)
    run_id = f"sweep-{i:04d}"
    engine = VectorizedEngine(
        cfg.dtype,
        log_events=cfg.log_events,
        output_dir=cfg.output_dir,
        run_label=run_id,
    )
    stats = run_validation(graph, engine, cfg, run_id=run_id)
    return i, stats.to_dict()


def run(
    sweep_path: pathlib.Path,
    out_dir: pathlib.Path,
    parallel: int = 1,
    use_processes: bool = False,
) -> Dict[str, Any]:
    """Execute a sweep and return the aggregated summary.

    Parameters
    ----------
    sweep_path, out_dir:
        Paths to the sweep configuration and output directory.
    parallel:
        Number of parallel workers. Uses a thread pool by default.
    use_processes:
        If ``True`` and ``parallel > 1``, a ``ProcessPoolExecutor`` is used
        instead of a thread pool.

    Notes
    -----
    ``out_dir`` receives ``stats.csv``, ``summary.json`` and one JSON
    statistics record per run under ``runs/``. A warning is logged for every
    run that fails validation.
    """

    cfg = _load_config(sweep_path)
    jobs = cfg.jobs()
    out_dir.mkdir(parents=True, exist_ok=True)
    stats_logger = StatsLogger(out_dir)

    results: List[Tuple[int, Dict[str, Any]]] = []
    if parallel > 1 and len(jobs) > 1:
        executor_cls = ProcessPoolExecutor if use_processes else ThreadPoolExecutor
        with executor_cls(max_workers=parallel) as ex:
            futs = [
                ex.submit(_process_job, i, g, o) for i, (g, o) in enumerate(jobs)
            ]
            results = [fut.result() for fut in futs]
    else:
        results = [_process_job(i, g, o) for i, (g, o) in enumerate(jobs)]

    for i, record in sorted(results, key=lambda x: x[0]):
        stats_logger.log(record, sample=i)
        write_stats_json(record, jsonfile=out_dir / "runs" / f"{i:04d}.json")
        if record["validation"] == "FAIL":
            logger.warning(
                "%s (max_iter=%s, precision=%s): %d divergent scores",
                record["graph"],
                record["config"]["max_iter"],
                record["config"]["precision"],
                record["num_errors"],
            )
    return stats_logger.flush()


def _load_config(path: pathlib.Path) -> SweepConfig:
    if path.suffix in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(path.read_text())
    elif path.suffix == ".toml":
        import tomllib

        data = tomllib.loads(path.read_text())
    else:
        raise ValueError(f"Unsupported config extension: {path.suffix}")
    return SweepConfig.from_mapping(data, base_dir=path.parent)


def main(argv: Iterable[str] | None = None) -> Dict[str, Any]:
    parser = argparse.ArgumentParser(description="Run a HITS validation sweep")
    parser.add_argument("--sweep", type=pathlib.Path, required=True)
    parser.add_argument("--out", type=pathlib.Path, required=True)
    parser.add_argument("--parallel", type=int, default=1)
    parser.add_argument(
        "--processes",
        action="store_true",
        help="Use a process pool instead of threads for parallel execution",
    )
    args = parser.parse_args(list(argv) if argv is not None else None)
    return run(args.sweep, args.out, args.parallel, args.processes)


if __name__ == "__main__":  # pragma: no cover
    main()
