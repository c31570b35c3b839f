import numpy as np

from Hits_Harness.graph import CsrGraph
from invariants import checks


def test_unit_norm():
    assert checks.unit_norm(np.array([0.6, 0.8]))
    assert not checks.unit_norm(np.array([0.6, 0.9]))


def test_all_finite():
    assert checks.all_finite(np.array([0.0, 1.0]))
    assert not checks.all_finite(np.array([np.nan, 1.0]))


def test_transpose_consistent():
    forward = CsrGraph.from_edges(3, [(0, 1), (0, 2), (2, 1)])
    assert checks.transpose_consistent(forward, forward.transpose())
    assert not checks.transpose_consistent(forward, forward)


def test_from_vectors():
    flags = checks.from_vectors(np.array([1.0, 0.0]), np.array([0.5, 0.5]))
    assert flags == {
        "inv_finite": True,
        "inv_hub_unit_norm": True,
        "inv_authority_unit_norm": False,
    }
