"""Invariant checks applied to graphs and score vectors."""

from __future__ import annotations

from typing import Dict

import numpy as np


def unit_norm(scores: np.ndarray, tolerance: float = 1e-5) -> bool:
    """Ensure ``sum(scores ** 2)`` is within ``tolerance`` of one."""

    arr = np.asarray(scores, dtype=np.float64)
    return bool(abs(float(np.dot(arr, arr)) - 1.0) <= tolerance)


def all_finite(scores: np.ndarray) -> bool:
    """Verify no score is NaN or infinite."""

    return bool(np.all(np.isfinite(scores)))


def _sorted_pairs(src: np.ndarray, dst: np.ndarray) -> np.ndarray:
    order = np.lexsort((dst, src))
    return np.stack([src[order], dst[order]], axis=1)


def transpose_consistent(forward, reverse) -> bool:
    """Return ``True`` when ``reverse`` holds the reversed edges of ``forward``."""

    if forward.num_vertices != reverse.num_vertices:
        return False
    if forward.num_edges != reverse.num_edges:
        return False
    fwd = _sorted_pairs(forward.row_ids(), forward.indices)
    rev = _sorted_pairs(reverse.indices, reverse.row_ids())
    return bool(np.array_equal(fwd, rev))


def from_vectors(
    hub: np.ndarray, authority: np.ndarray, tolerance: float = 1e-5
) -> Dict[str, bool]:
    """Extract invariant flags for a pair of score vectors."""

    return {
        "inv_finite": all_finite(hub) and all_finite(authority),
        "inv_hub_unit_norm": unit_norm(hub, tolerance),
        "inv_authority_unit_norm": unit_norm(authority, tolerance),
    }
