"""Graph containers and loaders."""

from .csr import CsrGraph, GraphView
from .loader import from_networkx, load_graph

__all__ = ["CsrGraph", "GraphView", "from_networkx", "load_graph"]
