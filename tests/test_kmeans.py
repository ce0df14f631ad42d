import os
import sys

import numpy as np
import pytest
from sklearn.cluster import KMeans as SKLearnKMeans
from sklearn.datasets import make_blobs
from sklearn.metrics import fowlkes_mallows_score

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
from bounded_kmeans import KMeans
from bounded_kmeans.evaluation import clustering_distance, fowlkes_mallows, inertia, pair_counts
from bounded_kmeans.initialization import initialize_centers


def blobs(seed=0):
    X, y = make_blobs(n_samples=600, centers=5, n_features=8, cluster_std=1.5, random_state=seed)
    return X, y


@pytest.mark.parametrize("algorithm", ["annulus", "hamerly", "lloyd"])
def test_matches_sklearn_lloyd(algorithm):
    X, _ = blobs()
    centers = initialize_centers(X, 5, "k-means++", random_state=0)

    ours = KMeans(n_clusters=5, init=centers, algorithm=algorithm).fit(X)
    ref = SKLearnKMeans(n_clusters=5, init=centers, n_init=1, max_iter=300,
                        tol=0.0, algorithm="lloyd").fit(X)

    np.testing.assert_array_equal(ours.labels_, ref.labels_)
    np.testing.assert_allclose(ours.cluster_centers_, ref.cluster_centers_, atol=1e-6)
    assert ours.inertia_ == pytest.approx(ref.inertia_, rel=1e-9)
    assert ours.converged_


def test_fit_recovers_well_separated_blobs():
    X, y = make_blobs(n_samples=500, centers=4, n_features=2, cluster_std=0.5, random_state=42)
    model = KMeans(n_clusters=4, n_init=5, random_state=42).fit(X)
    assert fowlkes_mallows(model.labels_, y) == pytest.approx(1.0)
    assert model.inertia_ == pytest.approx(inertia(X, model.labels_, model.cluster_centers_))


def test_predict_and_fit_predict():
    X, _ = blobs(seed=3)
    model = KMeans(n_clusters=5, random_state=1)
    with pytest.raises(ValueError):
        model.predict(X)

    labels = model.fit_predict(X)
    np.testing.assert_array_equal(model.predict(X), labels)
    assert model.predict(X[:3]).shape == (3,)


def test_n_init_keeps_best_run():
    X, _ = blobs(seed=5)
    single = [KMeans(n_clusters=5, init="random", random_state=s).fit(X).inertia_ for s in range(3)]
    best = KMeans(n_clusters=5, init="random", n_init=10, random_state=0).fit(X)
    assert best.inertia_ <= max(single) + 1e-9
    assert best.result_.inertia == best.inertia_


def test_get_cluster_info():
    X, _ = blobs(seed=7)
    model = KMeans(n_clusters=5, random_state=7, varstat=True)
    with pytest.raises(ValueError):
        model.get_cluster_info()

    model.fit(X)
    info = model.get_cluster_info()
    assert info['n_clusters'] == 5
    assert info['algorithm'] == 'annulus'
    assert info['converged'] is True
    assert sum(info['cluster_sizes'].values()) == len(X)
    assert info['empty_clusters'] == 0
    assert info['distance_computations'] > 0
    variances = [c.variance for c in model.result_.clusters]
    assert sum(variances) == pytest.approx(model.inertia_)


def test_manhattan_reports_downgraded_algorithm(capsys):
    X, _ = blobs(seed=8)
    model = KMeans(n_clusters=3, distance="manhattan", random_state=0, verbose=True).fit(X)
    assert model.get_cluster_info()['algorithm'] == 'hamerly'
    out = capsys.readouterr().out
    assert "using hamerly" in out
    assert "Final inertia" in out


def test_fowlkes_mallows_matches_sklearn():
    rng = np.random.default_rng(0)
    for _ in range(5):
        a = rng.integers(0, 4, size=200)
        b = rng.integers(0, 6, size=200)
        assert fowlkes_mallows(a, b) == pytest.approx(fowlkes_mallows_score(a, b))


def test_fowlkes_mallows_ignores_label_names():
    a = [0, 0, 1, 1, 2]
    b = [7, 7, 3, 3, 9]
    assert fowlkes_mallows(a, b) == 1.0
    assert clustering_distance(a, b) == 0.0
    assert fowlkes_mallows([0, 1, 2], [0, 1, 2]) == 1.0
    assert fowlkes_mallows([0, 0, 0], [0, 1, 2]) == 0.0


def test_pair_counts():
    pc = pair_counts([0, 0, 1, 1], [0, 0, 0, 1])
    assert pc.in_both == 1
    assert pc.in_first_only == 1
    assert pc.in_second_only == 2
    assert pc.in_neither == 2
    assert sum(pc) == 6
    with pytest.raises(ValueError):
        pair_counts([0, 1], [0, 1, 2])
