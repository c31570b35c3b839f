"""Vertex partitioning across emulated devices."""

from __future__ import annotations

from typing import Any, Dict, List

import numpy as np

from ..graph.csr import CsrGraph


def partition_vertices(
    graph: CsrGraph,
    num_parts: int,
    method: str = "contiguous",
    params: Dict[str, Any] | None = None,
) -> List[np.ndarray]:
    """Return one sorted array of owned vertex ids per part.

    Parameters
    ----------
    graph:
        Graph whose vertices are split.
    num_parts:
        Number of devices.
    method:
        ``"contiguous"`` splits the id range into equal blocks,
        ``"random"`` assigns each vertex to a uniformly drawn part and
        ``"biased_random"`` draws parts with probability inversely
        proportional to the edges already assigned to them.
    params:
        ``seed`` for the random methods.
    """

    if num_parts <= 0:
        raise ValueError(f"num_parts must be positive, got {num_parts}")
    params = params or {}
    n = graph.num_vertices
    if method == "contiguous":
        bounds = np.linspace(0, n, num_parts + 1).astype(np.int64)
        return [np.arange(bounds[i], bounds[i + 1]) for i in range(num_parts)]

    rng = np.random.default_rng(params.get("seed"))
    if method == "random":
        owner = rng.integers(0, num_parts, size=n)
    elif method == "biased_random":
        owner = np.empty(n, dtype=np.int64)
        load = np.ones(num_parts, dtype=np.float64)
        degrees = graph.degrees()
        for v in range(n):
            weights = 1.0 / load
            part = int(rng.choice(num_parts, p=weights / weights.sum()))
            owner[v] = part
            load[part] += degrees[v]
    else:
        raise ValueError(f"Unknown partition method: {method}")
    return [np.flatnonzero(owner == p) for p in range(num_parts)]
