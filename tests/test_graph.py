import numpy as np
import pytest

from Hits_Harness.graph import CsrGraph, GraphView


def test_from_edges_sorts_rows():
    graph = CsrGraph.from_edges(3, [(2, 0), (0, 2), (0, 1), (1, 2)])
    assert graph.offsets.tolist() == [0, 2, 3, 4]
    assert graph.indices.tolist() == [1, 2, 2, 0]
    assert graph.neighbors(0).tolist() == [1, 2]
    assert graph.degrees().tolist() == [2, 1, 1]
    assert list(graph.edges()) == [(0, 1), (0, 2), (1, 2), (2, 0)]


def test_transpose_reverses_edges():
    graph = CsrGraph.from_edges(3, [(0, 1), (0, 2), (1, 2)])
    rev = graph.transpose()
    assert sorted(rev.edges()) == [(1, 0), (2, 0), (2, 1)]
    assert rev.transpose().indices.tolist() == graph.indices.tolist()


def test_empty_graph():
    graph = CsrGraph.from_edges(2, [])
    assert graph.num_vertices == 2
    assert graph.num_edges == 0
    graph.validate()


@pytest.mark.parametrize(
    "offsets, indices",
    [
        ([1, 1], [0]),
        ([0, 2, 1], [0, 1]),
        ([0, 1, 3], [0, 1]),
        ([0, 1, 2], [0, 5]),
    ],
)
def test_validate_rejects_malformed_arrays(offsets, indices):
    graph = CsrGraph(np.asarray(offsets), np.asarray(indices))
    with pytest.raises(ValueError):
        graph.validate()


def test_source_out_of_range_rejected():
    with pytest.raises(ValueError):
        CsrGraph.from_edges(2, [(0, 1), (3, 0)])


def test_graph_view_requires_transpose():
    forward = CsrGraph.from_edges(3, [(0, 1), (1, 2)])
    GraphView(forward, forward.transpose()).validate()
    with pytest.raises(ValueError):
        GraphView(forward, forward).validate()
