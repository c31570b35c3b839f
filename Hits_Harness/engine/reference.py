"""Sequential reference implementation of HITS.

Scores are updated vertex by vertex in ascending id order with an explicit
accumulator so every floating point operation happens in the same order on
every invocation. Authority scores are recomputed and normalised from the
previous hub scores before hub scores are recomputed from the new
authorities. The loop always runs ``max_iter`` rounds.

A round whose scores are all zero divides by a zero norm. The resulting NaN
values are returned as-is.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from ..graph.csr import CsrGraph


def _gather(
    offsets: list[int], indices: list[int], src: np.ndarray, dst: np.ndarray
) -> np.floating:
    """Fill ``dst[v]`` with the sum of ``src`` over the row of ``v``.

    Returns the sum of squares of the new ``dst`` values.
    """

    zero = dst.dtype.type(0)
    norm = zero
    for v in range(len(offsets) - 1):
        acc = zero
        for e in range(offsets[v], offsets[v + 1]):
            acc = acc + src[indices[e]]
        dst[v] = acc
        norm = norm + acc * acc
    return norm


def _normalize(scores: np.ndarray, sq_norm: np.floating) -> None:
    norm = np.sqrt(sq_norm)
    with np.errstate(divide="ignore", invalid="ignore"):
        scores /= norm


def hits_reference(
    forward: CsrGraph,
    reverse: CsrGraph,
    max_iter: int,
    dtype: type = np.float64,
) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(hub, authority)`` after ``max_iter`` power-iteration rounds.

    Parameters
    ----------
    forward:
        Out-neighbour adjacency.
    reverse:
        In-neighbour adjacency; must be the transpose of ``forward``.
    max_iter:
        Number of rounds. No convergence check is made.
    dtype:
        Floating point type of the score vectors.
    """

    n = forward.num_vertices
    if reverse.num_vertices != n:
        raise ValueError("forward and reverse graphs have different vertex counts")

    hub = np.ones(n, dtype=dtype)
    auth = np.ones(n, dtype=dtype)
    fwd_offsets, fwd_indices = forward.offsets.tolist(), forward.indices.tolist()
    rev_offsets, rev_indices = reverse.offsets.tolist(), reverse.indices.tolist()

    for _ in range(max_iter):
        norm_a = _gather(rev_offsets, rev_indices, hub, auth)
        _normalize(auth, norm_a)
        norm_h = _gather(fwd_offsets, fwd_indices, auth, hub)
        _normalize(hub, norm_h)
    return hub, auth
