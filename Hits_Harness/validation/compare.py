"""Tolerance based comparison of score vectors."""

from __future__ import annotations

import sys
from typing import IO, Sequence

import numpy as np

#: Scores below this magnitude are treated as unranked.
NEAR_ZERO = 0.01
#: Half width of the value window printed around the first divergence.
WINDOW = 5


def mismatch_mask(
    computed: Sequence[float] | np.ndarray,
    reference: Sequence[float] | np.ndarray,
    threshold: float,
) -> np.ndarray:
    """Return a boolean array marking indices that diverge beyond ``threshold``.

    An index matches when ``computed`` is near zero and ``reference`` near
    one. Otherwise a near-zero ``computed`` value is judged on the absolute
    difference and every other value on the difference relative to
    ``reference``. NaN on exactly one side is a mismatch, NaN on both sides
    is not.
    """

    c = np.asarray(computed, dtype=np.float64)
    r = np.asarray(reference, dtype=np.float64)
    if c.shape != r.shape:
        raise ValueError(
            f"cannot compare vectors of length {c.shape[0]} and {r.shape[0]}"
        )
    with np.errstate(divide="ignore", invalid="ignore"):
        diff = c - r
        relative = np.abs(diff / r)
    near_zero = np.abs(c) < NEAR_ZERO
    unranked = near_zero & (np.abs(r - 1) < NEAR_ZERO)
    mask = np.where(near_zero, np.abs(diff) > threshold, relative > threshold)
    mask &= ~unranked
    c_nan, r_nan = np.isnan(c), np.isnan(r)
    return np.where(c_nan | r_nan, c_nan != r_nan, mask)


def _window(values: np.ndarray, idx: int) -> str:
    lo = max(0, idx - WINDOW)
    hi = min(values.shape[0], idx + WINDOW + 1)
    return ", ".join(f"{i}:{float(values[i])!r}" for i in range(lo, hi))


def compare_results(
    computed: Sequence[float] | np.ndarray,
    reference: Sequence[float] | np.ndarray,
    threshold: float,
    *,
    verbose: bool = False,
    quiet: bool = False,
    label: str | None = None,
    out: IO[str] | None = None,
) -> int:
    """Return the number of indices where ``computed`` diverges from ``reference``.

    Parameters
    ----------
    computed, reference:
        Equal-length score vectors.
    threshold:
        Largest tolerated relative (or, for near-zero values, absolute) error.
    verbose:
        Print a window of both vectors around the first divergence.
    quiet:
        Print nothing.
    label:
        Optional name prefixed to the printed report.
    out:
        Stream for the report. Defaults to ``sys.stdout``.

    Returns
    -------
    int
        Count of divergent indices; ``0`` means the vectors agree.
    """

    mask = mismatch_mask(computed, reference, threshold)
    count = int(mask.sum())
    if count and not quiet:
        out = out or sys.stdout
        c = np.asarray(computed)
        r = np.asarray(reference)
        idx = int(np.argmax(mask))
        prefix = f"{label} " if label else ""
        print(
            f"{prefix}INCORRECT: [{idx}]: {float(c[idx])!r} (computed) != "
            f"{float(r[idx])!r} (reference)",
            file=out,
        )
        if verbose:
            print(f"  reference = [{_window(r, idx)}]", file=out)
            print(f"  computed  = [{_window(c, idx)}]", file=out)
    return count
