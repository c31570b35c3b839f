import numpy as np
import pytest

from Hits_Harness.engine.reference import hits_reference
from Hits_Harness.graph import GraphView


def test_three_cycle_scores_are_uniform(cycle_graph):
    hub, auth = hits_reference(cycle_graph.forward, cycle_graph.reverse, 5)
    np.testing.assert_allclose(hub, np.full(3, 1 / np.sqrt(3)))
    np.testing.assert_allclose(auth, np.full(3, 1 / np.sqrt(3)))


def test_star_concentrates_hub_on_centre():
    graph = GraphView.from_edges(5, [(0, v) for v in range(1, 5)])
    hub, auth = hits_reference(graph.forward, graph.reverse, 3)
    np.testing.assert_allclose(hub, [1.0, 0.0, 0.0, 0.0, 0.0])
    np.testing.assert_allclose(auth, [0.0, 0.5, 0.5, 0.5, 0.5])


def test_isolated_vertex_scores_zero():
    graph = GraphView.from_edges(4, [(0, 1), (1, 2), (2, 0)])
    hub, auth = hits_reference(graph.forward, graph.reverse, 10)
    assert hub[3] == 0.0
    assert auth[3] == 0.0


def test_edgeless_graph_yields_nan():
    graph = GraphView.from_edges(3, [])
    hub, auth = hits_reference(graph.forward, graph.reverse, 2)
    assert np.isnan(hub).all()
    assert np.isnan(auth).all()


def test_reference_is_deterministic(small_graph):
    first = hits_reference(small_graph.forward, small_graph.reverse, 25)
    second = hits_reference(small_graph.forward, small_graph.reverse, 25)
    np.testing.assert_array_equal(first[0], second[0])
    np.testing.assert_array_equal(first[1], second[1])


@pytest.mark.parametrize("max_iter", [1, 2, 7])
def test_scores_have_unit_norm(small_graph, max_iter):
    hub, auth = hits_reference(small_graph.forward, small_graph.reverse, max_iter)
    assert np.dot(hub, hub) == pytest.approx(1.0)
    assert np.dot(auth, auth) == pytest.approx(1.0)


def test_precision_selects_dtype(small_graph):
    hub, auth = hits_reference(
        small_graph.forward, small_graph.reverse, 10, np.float32
    )
    assert hub.dtype == np.float32
    assert auth.dtype == np.float32
    ref_hub, _ = hits_reference(small_graph.forward, small_graph.reverse, 10)
    np.testing.assert_allclose(hub, ref_hub, rtol=1e-4, atol=1e-6)


def test_matches_principal_singular_vectors(small_graph):
    adj = np.zeros((4, 4))
    for u, v in small_graph.forward.edges():
        adj[u, v] = 1.0
    u, _, vt = np.linalg.svd(adj)
    hub, auth = hits_reference(small_graph.forward, small_graph.reverse, 100)
    np.testing.assert_allclose(hub, np.abs(u[:, 0]), atol=1e-8)
    np.testing.assert_allclose(auth, np.abs(vt[0]), atol=1e-8)


def test_mismatched_vertex_counts_rejected(small_graph, cycle_graph):
    with pytest.raises(ValueError):
        hits_reference(small_graph.forward, cycle_graph.reverse, 1)
