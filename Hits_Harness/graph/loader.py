"""Graph loaders producing :class:`GraphView` instances.

:func:`load_graph` dispatches on the file suffix:

``.json``
    Either the node/edge document used across the project
    (``{"nodes": [...], "edges": [{"from": ..., "to": ...}]}``) or a compact
    ``{"num_vertices": n, "edges": [[u, v], ...]}`` mapping.
``.mtx``
    Matrix Market coordinate files with 1-based ids; ``symmetric`` matrices
    contribute both edge directions.
anything else
    Whitespace separated integer edge lists read through :mod:`networkx`.
    File ids are kept, so the graph spans ``0..max_id``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple

import networkx as nx
import numpy as np

from .csr import CsrGraph, GraphView

logger = logging.getLogger(__name__)


def _finish(
    num_vertices: int,
    src: np.ndarray,
    dst: np.ndarray,
    name: str,
    remove_self_loops: bool,
    remove_duplicate_edges: bool,
) -> GraphView:
    src = np.asarray(src, dtype=np.int64)
    dst = np.asarray(dst, dtype=np.int64)
    if remove_self_loops:
        keep = src != dst
        dropped = int(src.shape[0] - keep.sum())
        if dropped:
            logger.info("Removed %d self-loops from %s", dropped, name)
        src, dst = src[keep], dst[keep]
    if remove_duplicate_edges and src.shape[0]:
        pairs = np.unique(np.stack([src, dst], axis=1), axis=0)
        dropped = int(src.shape[0] - pairs.shape[0])
        if dropped:
            logger.info("Removed %d duplicate edges from %s", dropped, name)
        src, dst = pairs[:, 0], pairs[:, 1]
    forward = CsrGraph.from_arrays(num_vertices, src, dst)
    return GraphView(forward=forward, reverse=forward.transpose(), name=name)


def from_networkx(
    graph: nx.Graph,
    *,
    name: str = "graph",
    remove_self_loops: bool = True,
    remove_duplicate_edges: bool = True,
) -> GraphView:
    """Convert a networkx graph into a :class:`GraphView`.

    Nodes are relabelled densely in ``graph.nodes`` order. Undirected graphs
    contribute both directions of every edge.
    """

    id_map = {node: i for i, node in enumerate(graph.nodes)}
    pairs: List[Tuple[int, int]] = []
    for u, v in graph.edges():
        pairs.append((id_map[u], id_map[v]))
        if not graph.is_directed():
            pairs.append((id_map[v], id_map[u]))
    arr = np.asarray(pairs, dtype=np.int64).reshape(-1, 2)
    return _finish(
        len(id_map),
        arr[:, 0],
        arr[:, 1],
        name,
        remove_self_loops,
        remove_duplicate_edges,
    )


def load_graph_json(
    graph_json: Dict[str, Any], name: str = "graph", **opts: Any
) -> GraphView:
    """Convert a graph JSON dictionary into a :class:`GraphView`.

    Parameters
    ----------
    graph_json:
        Either a node/edge document or a ``num_vertices``/``edges`` mapping.
    name:
        Label recorded on the resulting view.
    """

    if "num_vertices" in graph_json:
        n_vert = int(graph_json["num_vertices"])
        arr = np.asarray(graph_json.get("edges", []), dtype=np.int64).reshape(-1, 2)
        return _finish(n_vert, arr[:, 0], arr[:, 1], name, **_defaults(opts))

    nodes = graph_json.get("nodes", {})
    if isinstance(nodes, list):
        nodes = {n.get("id", str(i)): n for i, n in enumerate(nodes)}
    id_map = {nid: i for i, nid in enumerate(nodes)}

    src: List[int] = []
    dst: List[int] = []
    for edge in graph_json.get("edges", []):
        src_idx = id_map.get(edge.get("from"))
        dst_idx = id_map.get(edge.get("to"))
        if src_idx is None or dst_idx is None:
            logger.warning("Skipping edge with unknown endpoint: %s", edge)
            continue
        src.append(src_idx)
        dst.append(dst_idx)
    return _finish(
        len(id_map), np.asarray(src), np.asarray(dst), name, **_defaults(opts)
    )


def load_matrix_market(path: Path, name: str = "graph", **opts: Any) -> GraphView:
    """Read a Matrix Market coordinate file into a :class:`GraphView`."""

    symmetric = False
    header_seen = False
    size: Tuple[int, int, int] | None = None
    src: List[int] = []
    dst: List[int] = []
    with path.open() as fh:
        for line in fh:
            stripped = line.strip()
            if not stripped:
                continue
            if stripped.startswith("%%MatrixMarket"):
                tokens = stripped.lower().split()
                if "coordinate" not in tokens:
                    raise ValueError(f"{path}: only coordinate matrices are supported")
                symmetric = "symmetric" in tokens
                header_seen = True
                continue
            if stripped.startswith("%"):
                continue
            fields = stripped.split()
            if size is None:
                rows, cols, nnz = (int(x) for x in fields[:3])
                size = (rows, cols, nnz)
                continue
            u, v = int(fields[0]) - 1, int(fields[1]) - 1
            src.append(u)
            dst.append(v)
            if symmetric and u != v:
                src.append(v)
                dst.append(u)
    if not header_seen or size is None:
        raise ValueError(f"{path}: missing Matrix Market header")
    return _finish(
        max(size[0], size[1]),
        np.asarray(src),
        np.asarray(dst),
        name,
        **_defaults(opts),
    )


def load_edge_list(path: Path, name: str = "graph", **opts: Any) -> GraphView:
    """Read a whitespace separated edge list of integer vertex ids.

    Ids are kept as they appear in the file, so the graph spans
    ``0..max_id`` and vertices without edges keep their slot. Repeated lines
    stay parallel edges until duplicate removal is applied.
    """

    g = nx.read_edgelist(path, create_using=nx.MultiDiGraph, nodetype=int)
    arr = np.asarray(list(g.edges()), dtype=np.int64).reshape(-1, 2)
    if arr.size and arr.min() < 0:
        raise ValueError(f"{path}: vertex ids must be non-negative")
    n_vert = int(arr.max()) + 1 if arr.size else 0
    return _finish(n_vert, arr[:, 0], arr[:, 1], name, **_defaults(opts))


def _defaults(opts: Dict[str, Any]) -> Dict[str, bool]:
    return {
        "remove_self_loops": opts.get("remove_self_loops", True),
        "remove_duplicate_edges": opts.get("remove_duplicate_edges", True),
    }


def load_graph(
    path: str | Path,
    *,
    remove_self_loops: bool = True,
    remove_duplicate_edges: bool = True,
) -> GraphView:
    """Load ``path`` into a :class:`GraphView` named after the file stem."""

    path = Path(path)
    opts = {
        "remove_self_loops": remove_self_loops,
        "remove_duplicate_edges": remove_duplicate_edges,
    }
    name = path.stem
    if path.suffix == ".json":
        view = load_graph_json(json.loads(path.read_text()), name=name, **opts)
    elif path.suffix == ".mtx":
        view = load_matrix_market(path, name=name, **opts)
    else:
        view = load_edge_list(path, name=name, **opts)
    logger.info(
        "Loaded %s: %d vertices, %d edges",
        name,
        view.num_vertices,
        view.num_edges,
    )
    return view
