"""Compressed sparse row adjacency used by every ranking component.

A :class:`GraphView` bundles the forward graph (vertex to out-neighbours)
with its transpose (vertex to in-neighbours). Both are built once by the
loader and treated as read-only afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np


@dataclass(frozen=True)
class CsrGraph:
    """CSR encoding of a directed graph over vertices ``0..N-1``.

    ``offsets`` holds ``N + 1`` non-decreasing entries and the neighbours of
    vertex ``v`` are ``indices[offsets[v]:offsets[v + 1]]``.
    """

    offsets: np.ndarray
    indices: np.ndarray

    @property
    def num_vertices(self) -> int:
        return int(self.offsets.shape[0]) - 1

    @property
    def num_edges(self) -> int:
        return int(self.indices.shape[0])

    def neighbors(self, v: int) -> np.ndarray:
        """Return the neighbour ids of ``v``."""
        return self.indices[self.offsets[v] : self.offsets[v + 1]]

    def degrees(self) -> np.ndarray:
        return np.diff(self.offsets)

    def row_ids(self) -> np.ndarray:
        """Return the source vertex of every entry in :attr:`indices`."""
        return np.repeat(
            np.arange(self.num_vertices, dtype=np.int64), self.degrees()
        )

    def edges(self) -> Iterable[Tuple[int, int]]:
        """Yield ``(src, dst)`` pairs in storage order."""
        for src, dst in zip(self.row_ids().tolist(), self.indices.tolist()):
            yield src, dst

    def validate(self) -> None:
        """Raise ``ValueError`` when the arrays do not form a valid CSR."""

        if self.offsets.ndim != 1 or self.offsets.shape[0] < 1:
            raise ValueError("offsets must be a one dimensional array of N+1 entries")
        if self.offsets[0] != 0:
            raise ValueError(f"offsets[0] must be 0, got {self.offsets[0]}")
        if np.any(np.diff(self.offsets) < 0):
            raise ValueError("offsets must be monotonically non-decreasing")
        if self.offsets[-1] != self.num_edges:
            raise ValueError(
                f"offsets[N]={self.offsets[-1]} does not match "
                f"{self.num_edges} indices"
            )
        if self.num_edges and (
            self.indices.min() < 0 or self.indices.max() >= self.num_vertices
        ):
            raise ValueError("indices reference vertices outside 0..N-1")

    def transpose(self) -> "CsrGraph":
        """Return the CSR of the graph with every edge reversed."""

        return CsrGraph.from_arrays(self.num_vertices, self.indices, self.row_ids())

    @classmethod
    def from_arrays(
        cls, num_vertices: int, src: np.ndarray, dst: np.ndarray
    ) -> "CsrGraph":
        """Build a CSR from parallel ``src``/``dst`` arrays.

        Neighbour lists are sorted ascending so the layout only depends on the
        edge set, never on input order.
        """

        src = np.asarray(src, dtype=np.int64)
        dst = np.asarray(dst, dtype=np.int64)
        if src.shape != dst.shape:
            raise ValueError("src and dst must have the same length")
        order = np.lexsort((dst, src))
        counts = np.bincount(src, minlength=num_vertices)
        if counts.shape[0] > num_vertices:
            raise ValueError("edge source outside 0..N-1")
        offsets = np.zeros(num_vertices + 1, dtype=np.int64)
        np.cumsum(counts, out=offsets[1:])
        graph = cls(offsets=offsets, indices=dst[order])
        graph.validate()
        return graph

    @classmethod
    def from_edges(
        cls, num_vertices: int, edges: Iterable[Tuple[int, int]]
    ) -> "CsrGraph":
        pairs = np.asarray(list(edges), dtype=np.int64).reshape(-1, 2)
        return cls.from_arrays(num_vertices, pairs[:, 0], pairs[:, 1])


@dataclass(frozen=True)
class GraphView:
    """Forward graph and its transpose over the same vertex set."""

    forward: CsrGraph
    reverse: CsrGraph
    name: str = "graph"

    @property
    def num_vertices(self) -> int:
        return self.forward.num_vertices

    @property
    def num_edges(self) -> int:
        return self.forward.num_edges

    def validate(self) -> None:
        """Raise ``ValueError`` unless ``reverse`` is the transpose of ``forward``."""

        from invariants import checks

        self.forward.validate()
        self.reverse.validate()
        if not checks.transpose_consistent(self.forward, self.reverse):
            raise ValueError("reverse graph is not the transpose of the forward graph")

    @classmethod
    def from_edges(
        cls,
        num_vertices: int,
        edges: Iterable[Tuple[int, int]],
        name: str = "graph",
    ) -> "GraphView":
        """Return a :class:`GraphView` built from ``(src, dst)`` pairs."""

        forward = CsrGraph.from_edges(num_vertices, edges)
        return cls(forward=forward, reverse=forward.transpose(), name=name)
