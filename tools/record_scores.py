"""Utility to record reference HITS scores for replay runs."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import numpy as np

from Hits_Harness.config import PRECISIONS
from Hits_Harness.engine.reference import hits_reference
from Hits_Harness.graph.loader import load_graph


def record_scores(
    graph_path: str,
    out_path: str,
    *,
    max_iter: int = 50,
    precision: str = "float64",
) -> Path:
    """Write reference hub and authority scores for ``graph_path``.

    The output holds ``{"hub": [...], "authority": [...]}`` and can be fed to
    ``--engine replay --scores``. ``.npz`` destinations are written with
    :func:`numpy.savez` instead of JSON.
    """

    graph = load_graph(graph_path)
    hub, auth = hits_reference(
        graph.forward, graph.reverse, max_iter, PRECISIONS[precision]
    )
    dest = Path(out_path)
    dest.parent.mkdir(parents=True, exist_ok=True)
    if dest.suffix == ".npz":
        np.savez(dest, hub=hub, authority=auth)
    else:
        dest.write_text(
            json.dumps({"hub": hub.tolist(), "authority": auth.tolist()})
        )
    return dest


def main() -> None:
    """CLI entry point for recording scores."""

    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("graph", help="graph file (.json, .mtx or edge list)")
    parser.add_argument("out", help="destination .json or .npz file")
    parser.add_argument("--max-iter", type=int, default=50, dest="max_iter")
    parser.add_argument(
        "--precision", choices=sorted(PRECISIONS), default="float64"
    )
    args = parser.parse_args()
    record_scores(
        args.graph, args.out, max_iter=args.max_iter, precision=args.precision
    )


if __name__ == "__main__":  # pragma: no cover - CLI tool
    main()
