# main.py

"""Entry point for a single HITS validation run."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import uuid
from dataclasses import dataclass
from typing import Any

from Hits_Harness.config import PARTITION_METHODS, PRECISIONS, Config, RunConfig
from Hits_Harness.engine import ENGINES, RankingEngine, ReplayEngine, VectorizedEngine
from Hits_Harness.graph.loader import load_graph
from Hits_Harness.validation.orchestrator import RunStats, run_validation
from telemetry.metrics import write_stats_json

# Parser destinations that map onto ``Config`` attributes
_CONFIG_KEYS = (
    "max_iter",
    "error_threshold",
    "quick",
    "quiet",
    "verbose",
    "src",
    "delta",
    "device",
    "partition_method",
    "partition_seed",
    "num_runs",
    "precision",
    "hub_only",
    "top_k",
    "log_events",
    "output_dir",
    "log_file",
    "jsonfile",
    "jsondir",
)


def _configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure application logging and capture uncaught exceptions."""

    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    kwargs: dict[str, Any] = {}
    if Config.log_file:
        kwargs = {"filename": Config.log_file, "filemode": "a"}
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        **kwargs,
    )

    def _log_excepthook(exc_type, exc, tb) -> None:
        logging.getLogger(__name__).exception(
            "Uncaught exception", exc_info=(exc_type, exc, tb)
        )

    sys.excepthook = _log_excepthook


def _device_list(text: str) -> list[int]:
    return [int(d) for d in text.split(",") if d.strip()]


def _apply_overrides(args: argparse.Namespace) -> None:
    """Apply CLI overrides back onto :class:`Config`."""
    for key in _CONFIG_KEYS:
        override = getattr(args, key, None)
        if override is not None:
            setattr(Config, key, override)


@dataclass
class MainService:
    """Handle CLI parsing, engine selection and result reporting."""

    argv: list[str] | None = None

    def run(self) -> int:
        """Execute one validation run and return the number of divergences."""

        args = self._parse_args()
        _apply_overrides(args)
        _configure_logging(Config.verbose, Config.quiet)
        cfg = RunConfig.from_config()
        graph = load_graph(
            args.graph,
            remove_self_loops=not args.keep_self_loops,
            remove_duplicate_edges=not args.keep_duplicate_edges,
        )
        run_id = uuid.uuid4().hex[:12]
        engine = self._build_engine(args, cfg, run_id)
        stats = run_validation(graph, engine, cfg, run_id=run_id)
        self._report(stats)
        return stats.num_errors

    # ------------------------------------------------------------------
    @staticmethod
    def _build_engine(
        args: argparse.Namespace, cfg: RunConfig, run_id: str
    ) -> RankingEngine:
        if args.engine == ReplayEngine.name:
            return ReplayEngine.from_file(args.scores, dtype=cfg.dtype)
        return VectorizedEngine(
            cfg.dtype,
            log_events=cfg.log_events,
            output_dir=cfg.output_dir,
            run_label=run_id,
        )

    # ------------------------------------------------------------------
    @staticmethod
    def _report(stats: RunStats) -> None:
        path = write_stats_json(
            stats, jsonfile=Config.jsonfile, jsondir=Config.jsondir
        )
        if path is not None:
            logging.getLogger(__name__).info("Statistics written to %s", path)
        print(json.dumps(stats.to_dict(), indent=2))

    # ------------------------------------------------------------------
    def _parse_args(self) -> argparse.Namespace:
        initial = argparse.ArgumentParser(add_help=False)
        initial.add_argument(
            "--config",
            default=None,
            help="Path to JSON configuration file",
        )
        known, _ = initial.parse_known_args(self.argv)
        if known.config:
            if not os.path.exists(known.config):
                raise FileNotFoundError(known.config)
            Config.load_from_file(known.config)

        parser = argparse.ArgumentParser(
            parents=[initial],
            description="Validate a HITS engine against the reference",
        )
        parser.add_argument(
            "--graph", required=True, help="Graph file (.json, .mtx or edge list)"
        )
        parser.add_argument(
            "--engine",
            choices=sorted(ENGINES),
            default=VectorizedEngine.name,
            help="Engine under test",
        )
        parser.add_argument(
            "--scores", help="Recorded hub/authority scores for the replay engine"
        )
        parser.add_argument("--max-iter", dest="max_iter", type=int)
        parser.add_argument("--error-threshold", dest="error_threshold", type=float)
        parser.add_argument(
            "--quick",
            action="store_const",
            const=True,
            help="Skip the reference computation and validation",
        )
        parser.add_argument("--quiet", action="store_const", const=True)
        parser.add_argument("--verbose", "-v", action="store_const", const=True)
        parser.add_argument("--src", type=int, help="Source vertex passed to reset")
        parser.add_argument("--delta", type=float, help="Engine convergence knob")
        parser.add_argument(
            "--device", type=_device_list, help="Comma-separated device ids"
        )
        parser.add_argument(
            "--partition-method", dest="partition_method", choices=PARTITION_METHODS
        )
        parser.add_argument("--partition-seed", dest="partition_seed", type=int)
        parser.add_argument(
            "--num-runs",
            dest="num_runs",
            type=int,
            help="Repeat engine reset/run and average the compute time",
        )
        parser.add_argument("--precision", choices=sorted(PRECISIONS))
        parser.add_argument(
            "--hub-only",
            dest="hub_only",
            action="store_const",
            const=True,
            help="Compare hub scores only",
        )
        parser.add_argument("--top-k", dest="top_k", type=int)
        parser.add_argument(
            "--log-events",
            dest="log_events",
            action="store_const",
            const=True,
            help="Write JSON-lines event logs under --output-dir",
        )
        parser.add_argument("--output-dir", dest="output_dir")
        parser.add_argument("--log-file", dest="log_file")
        parser.add_argument("--jsonfile", help="Write the statistics record here")
        parser.add_argument(
            "--jsondir", help="Directory for timestamped statistics records"
        )
        parser.add_argument("--keep-self-loops", action="store_true")
        parser.add_argument("--keep-duplicate-edges", action="store_true")
        args = parser.parse_args(self.argv)
        if args.engine == ReplayEngine.name and not args.scores:
            parser.error("--engine replay requires --scores")
        return args


def main() -> None:
    """Entry point for external callers."""
    sys.exit(1 if MainService().run() else 0)


if __name__ == "__main__":
    main()
