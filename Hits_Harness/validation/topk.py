"""Top-K ranking of score vectors."""

from __future__ import annotations

from typing import List, NamedTuple, Sequence

import numpy as np


class RankingPair(NamedTuple):
    vertex: int
    score: float


def top_k(scores: Sequence[float] | np.ndarray, k: int = 10) -> List[RankingPair]:
    """Return the ``min(k, N)`` highest scoring vertices, best first.

    The sort is stable so tied scores keep ascending vertex order.
    """

    arr = np.asarray(scores)
    order = np.argsort(-arr, kind="stable")[: min(k, arr.shape[0])]
    return [RankingPair(int(v), float(arr[v])) for v in order]


def format_top_k(pairs: Sequence[RankingPair], label: str) -> List[str]:
    """Render ``pairs`` as display lines headed by ``label``."""

    lines = [f"Top {len(pairs)} {label}:"]
    lines.extend(f"  vertex {p.vertex}: {p.score:.8f}" for p in pairs)
    return lines
