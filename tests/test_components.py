import os
import sys

import numpy as np
import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
from bounded_kmeans import vector_ops
from bounded_kmeans.centers import CenterTracker
from bounded_kmeans.distance import (
    CosineDistance,
    EuclideanDistance,
    ManhattanDistance,
    SquaredEuclideanDistance,
    get_distance,
)
from bounded_kmeans.exceptions import ConfigurationError
from bounded_kmeans.initialization import initialize_centers
from bounded_kmeans.store import AssignmentStore, VectorStore


def test_vector_ops_mutate_only_destinations():
    a = np.array([1.0, 2.0])
    b = np.array([10.0, 20.0])
    v = np.array([0.5, 0.5])
    assert vector_ops.add(a, v) is a
    np.testing.assert_array_equal(a, [1.5, 2.5])

    vector_ops.subtract_add(a, b, v)
    np.testing.assert_array_equal(a, [2.0, 3.0])
    np.testing.assert_array_equal(b, [9.5, 19.5])
    np.testing.assert_array_equal(v, [0.5, 0.5])

    np.testing.assert_array_equal(vector_ops.scale(v, 4), [2.0, 2.0])
    assert vector_ops.euclidean_norm(np.array([3.0, 4.0])) == 5.0


@pytest.mark.parametrize("distance", [
    SquaredEuclideanDistance(), EuclideanDistance(), ManhattanDistance(), CosineDistance(),
])
def test_pairwise_agrees_with_single_distances(distance):
    rng = np.random.default_rng(0)
    X = rng.normal(size=(7, 3))
    C = rng.normal(size=(4, 3))
    D = distance.pairwise(X, C)
    assert D.shape == (7, 4)
    for i in range(7):
        for j in range(4):
            assert D[i, j] == pytest.approx(distance(X[i], C[j]), abs=1e-12)


def test_distance_values_and_flags():
    a = np.array([0.0, 0.0])
    b = np.array([3.0, 4.0])
    assert SquaredEuclideanDistance()(a, b) == 25.0
    assert SquaredEuclideanDistance().to_bound(25.0) == 5.0
    assert EuclideanDistance()(a, b) == 5.0
    assert EuclideanDistance().to_bound(5.0) == 5.0
    assert ManhattanDistance()(a, b) == 7.0
    assert CosineDistance()(b, 2 * b) == pytest.approx(0.0)
    assert CosineDistance()(a, b) == 1.0
    assert CosineDistance()(a, a) == 0.0

    assert SquaredEuclideanDistance.squared and SquaredEuclideanDistance.is_euclidean
    assert not ManhattanDistance.is_euclidean and ManhattanDistance.is_metric
    assert not CosineDistance.is_metric


def test_get_distance():
    assert isinstance(get_distance(None), SquaredEuclideanDistance)
    assert isinstance(get_distance("euclidean"), EuclideanDistance)
    d = ManhattanDistance()
    assert get_distance(d) is d
    with pytest.raises(ConfigurationError):
        get_distance("hamming")


def test_vector_store():
    store = VectorStore([[3.0, 4.0], [0.0, 1.0]])
    assert len(store) == 2
    assert store.dim == 2
    assert list(store.ids()) == [0, 1]
    np.testing.assert_array_equal(store.get(1), [0.0, 1.0])
    np.testing.assert_allclose(store.norms(), [5.0, 1.0])
    with pytest.raises(IndexError):
        store.get(2)
    with pytest.raises(ValueError):
        store.data[0, 0] = 1.0


def test_vector_store_rejects_non_finite():
    with pytest.raises(ValueError):
        VectorStore([[1.0, np.nan]])


def test_assignment_store():
    a = AssignmentStore(4, 3)
    assert a.get(2).cluster_id == 0
    assert a.get(2).second_cluster_id == -1

    a.set(1, 2, 0, 1.5, 3.0)
    a.set(3, 2, 1, 0.5, 0.75)
    assert a.get(1) == (2, 0, 1.5, 3.0)
    assert a.members(2).tolist() == [1, 3]
    assert a.members(0).tolist() == [0, 2]
    assert a.sizes().tolist() == [2, 0, 2]

    with pytest.raises(IndexError):
        a.get(4)
    with pytest.raises(IndexError):
        a.set(-1, 0, 1, 0.0, 0.0)


def test_update_bounds_uses_largest_other_movement():
    a = AssignmentStore(3, 3)
    for i in range(3):
        a.set(i, i, (i + 1) % 3, 10.0, 20.0)
    a.update_bounds(np.array([1.0, 3.0, 2.0]))
    np.testing.assert_array_equal(a.upper, [11.0, 13.0, 12.0])
    # Cluster 1 moved the most, so its points only lose the runner-up movement
    np.testing.assert_array_equal(a.lower, [17.0, 18.0, 17.0])


def test_center_tracker_separations_and_norm_order():
    centers = np.array([[0.0, 10.0], [4.0, 0.0], [0.0, 0.0]])
    tracker = CenterTracker(centers, SquaredEuclideanDistance())

    sep = tracker.recompute_separations()
    np.testing.assert_allclose(sep, [5.0, 2.0, 2.0])

    cdist, cnum = tracker.recompute_norm_order()
    assert cnum.tolist() == [2, 1, 0]
    np.testing.assert_allclose(cdist, [0.0, 4.0, 10.0])


def test_center_tracker_recompute_keeps_empty_centers():
    tracker = CenterTracker(np.array([[0.0, 0.0], [5.0, 5.0]]), EuclideanDistance())
    tracker.add_point(0, np.array([2.0, 0.0]))
    tracker.add_point(0, np.array([4.0, 0.0]))
    move = tracker.recompute_centers()
    np.testing.assert_array_equal(tracker.centers, [[3.0, 0.0], [5.0, 5.0]])
    np.testing.assert_allclose(move, [3.0, 0.0])

    tracker.move_point(0, 1, np.array([4.0, 0.0]))
    assert tracker.counts.tolist() == [1, 1]
    np.testing.assert_array_equal(tracker.sums, [[2.0, 0.0], [4.0, 0.0]])


@pytest.mark.parametrize("method", ["k-means++", "random", "first"])
def test_initialize_centers(method):
    X = np.random.default_rng(0).normal(size=(50, 3))
    centers = initialize_centers(X, 5, method, random_state=0)
    assert centers.shape == (5, 3)
    # Every seed is a data point
    for c in centers:
        assert np.any(np.all(np.isclose(X, c), axis=1))
    np.testing.assert_array_equal(centers, initialize_centers(X, 5, method, random_state=0))


def test_initialize_centers_explicit_and_errors():
    X = np.zeros((10, 2))
    np.testing.assert_array_equal(initialize_centers(X, 2, np.ones((2, 2))), np.ones((2, 2)))
    with pytest.raises(ConfigurationError):
        initialize_centers(X, 2, np.ones((3, 2)))
    with pytest.raises(ConfigurationError):
        initialize_centers(X, 11)
    with pytest.raises(ConfigurationError):
        initialize_centers(X, 2, "forgy")
    # Identical points still give k centers
    assert initialize_centers(X, 3, "k-means++", random_state=1).shape == (3, 2)


@pytest.mark.parametrize("distance", [
    SquaredEuclideanDistance(), EuclideanDistance(), ManhattanDistance(), CosineDistance(),
])
def test_pairwise_blocks_match_single_block(distance):
    rng = np.random.default_rng(1)
    X = rng.normal(size=(1000, 16))
    C = rng.normal(size=(12, 16))
    whole = distance.pairwise(X, C)

    # About 40 rows per block
    distance.working_memory = 40 * 8 * 12 * 16 / 2 ** 20
    blocked = distance.pairwise(X, C)
    np.testing.assert_allclose(blocked, whole, rtol=1e-12, atol=1e-12)
    assert blocked.shape == (1000, 12)
