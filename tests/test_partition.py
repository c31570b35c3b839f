import numpy as np
import pytest

from Hits_Harness.engine.partition import partition_vertices
from Hits_Harness.graph import CsrGraph


@pytest.fixture
def ring():
    return CsrGraph.from_edges(10, [(i, (i + 1) % 10) for i in range(10)])


@pytest.mark.parametrize("method", ["contiguous", "random", "biased_random"])
def test_parts_cover_every_vertex_once(ring, method):
    parts = partition_vertices(ring, 3, method, {"seed": 7})
    assert len(parts) == 3
    merged = np.sort(np.concatenate(parts))
    assert merged.tolist() == list(range(10))


def test_contiguous_blocks(ring):
    parts = partition_vertices(ring, 2)
    assert parts[0].tolist() == [0, 1, 2, 3, 4]
    assert parts[1].tolist() == [5, 6, 7, 8, 9]


def test_random_is_seeded(ring):
    first = partition_vertices(ring, 3, "random", {"seed": 1})
    second = partition_vertices(ring, 3, "random", {"seed": 1})
    assert [p.tolist() for p in first] == [p.tolist() for p in second]


def test_invalid_arguments(ring):
    with pytest.raises(ValueError):
        partition_vertices(ring, 0)
    with pytest.raises(ValueError):
        partition_vertices(ring, 2, "metis")
