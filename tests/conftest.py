import sys
from pathlib import Path

# Ensure package import for tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from Hits_Harness.config import Config
from Hits_Harness.graph import GraphView


@pytest.fixture(autouse=True)
def _restore_config() -> None:
    """Undo CLI overrides written onto the global ``Config``."""

    saved = {
        k: v
        for k, v in vars(Config).items()
        if not k.startswith("_") and not callable(v) and not isinstance(v, classmethod)
    }
    yield
    for key, value in saved.items():
        setattr(Config, key, value)


@pytest.fixture
def cycle_graph() -> GraphView:
    """Directed three-cycle ``0 -> 1 -> 2 -> 0``."""

    return GraphView.from_edges(3, [(0, 1), (1, 2), (2, 0)], name="cycle")


@pytest.fixture
def small_graph() -> GraphView:
    """Four vertex graph with a dominant hub/authority pair."""

    edges = [(0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3), (3, 0)]
    return GraphView.from_edges(4, edges, name="small")
