"""
K-means clustering estimator built on the bound-pruned engine.
Optimized for data sets where k is small relative to the number of points.
"""

from typing import Optional, Union

import numpy as np
from sklearn.utils import check_array, check_random_state

from .distance import DistanceFunction, get_distance
from .engine import BoundedAssignmentEngine, KMeansConfig, RunState
from .initialization import initialize_centers
from .result import KMeansResult
from .store import VectorStore


class KMeans:
    """
    K-means clustering with Hamerly / Annulus acceleration.

    Features:
    - K-means++ initialization for better initial centroids
    - Multiple initialization attempts
    - Bound pruning that skips most distance computations once clusters settle
    - Support for different distance metrics
    """

    def __init__(
        self,
        n_clusters: int,
        max_iters: int = 300,
        n_init: int = 1,
        init: Union[str, np.ndarray] = 'k-means++',
        distance: Union[str, DistanceFunction] = 'sqeuclidean',
        algorithm: str = 'annulus',
        varstat: bool = False,
        random_state: Optional[int] = None,
        verbose: bool = False
    ):
        """
        Initialize K-means clustering.

        Args:
            n_clusters: Number of clusters
            max_iters: Maximum number of iterations
            n_init: Number of different initializations to try
            init: Initialization method ('k-means++', 'random', 'first') or an
                array of initial centers
            distance: Distance function name or instance
            algorithm: 'annulus', 'hamerly' or 'lloyd'
            varstat: Whether to compute per-cluster variance statistics
            random_state: Random seed for reproducibility
            verbose: Whether to print progress information
        """
        self.n_clusters = n_clusters
        self.max_iters = max_iters
        self.n_init = n_init
        self.init = init
        self.distance = distance
        self.algorithm = algorithm
        self.varstat = varstat
        self.random_state = random_state
        self.verbose = verbose

        # Results
        self.cluster_centers_ = None
        self.labels_ = None
        self.inertia_ = None
        self.n_iter_ = None
        self.converged_ = None
        self.result_: Optional[KMeansResult] = None

    def _fit_single(self, store: VectorStore, initial_centers: np.ndarray) -> KMeansResult:
        """Single k-means run from fixed initial centers."""
        config = KMeansConfig(
            k=self.n_clusters,
            max_iter=self.max_iters,
            distance=self.distance,
            variant=self.algorithm,
            varstat=self.varstat,
            verbose=self.verbose,
        )
        engine = BoundedAssignmentEngine(store, initial_centers, config)
        engine.run()
        return engine.result()

    def fit(self, X: np.ndarray) -> 'KMeans':
        """
        Fit K-means clustering to the data.

        Args:
            X: Input data of shape (n_samples, n_features)

        Returns:
            self
        """
        store = VectorStore(X)
        rng = check_random_state(self.random_state)
        # An explicit set of centers makes restarts pointless
        n_init = 1 if not isinstance(self.init, str) else max(1, self.n_init)

        if self.verbose:
            print(f"Fitting K-means with {self.n_clusters} clusters on {len(store)} samples...")

        best = None
        for init_run in range(n_init):
            if self.verbose and n_init > 1:
                print(f"Initialization {init_run + 1}/{n_init}")

            centers = initialize_centers(store.data, self.n_clusters, self.init, rng)
            result = self._fit_single(store, centers)

            if best is None or result.inertia < best.inertia:
                best = result

        self.result_ = best
        self.cluster_centers_ = best.centers
        self.labels_ = best.labels
        self.inertia_ = best.inertia
        self.n_iter_ = best.n_iter
        self.converged_ = best.state is RunState.CONVERGED

        if self.verbose:
            print(f"Final inertia: {self.inertia_:.2f}")

        return self

    def predict(self, X: np.ndarray) -> np.ndarray:
        """
        Predict cluster labels for new data.

        Args:
            X: Input data of shape (n_samples, n_features)

        Returns:
            Cluster labels
        """
        if self.cluster_centers_ is None:
            raise ValueError("Model must be fitted before prediction")

        X = check_array(X, dtype=np.float64)
        distances = get_distance(self.distance).pairwise(X, self.cluster_centers_)
        return np.argmin(distances, axis=1)

    def fit_predict(self, X: np.ndarray) -> np.ndarray:
        """
        Fit the model and predict cluster labels.

        Args:
            X: Input data of shape (n_samples, n_features)

        Returns:
            Cluster labels
        """
        return self.fit(X).labels_

    def get_cluster_info(self) -> dict:
        """Get information about the clustering results."""
        if self.cluster_centers_ is None:
            raise ValueError("Model must be fitted first")

        cluster_sizes = self.result_.sizes

        return {
            'n_clusters': self.n_clusters,
            'algorithm': self.result_.variant,
            'inertia': self.inertia_,
            'n_iterations': self.n_iter_,
            'converged': self.converged_,
            'distance_computations': self.result_.distance_computations,
            'cluster_sizes': dict(enumerate(cluster_sizes.tolist())),
            'empty_clusters': int(np.sum(cluster_sizes == 0)),
            'avg_cluster_size': float(np.mean(cluster_sizes)),
            'std_cluster_size': float(np.std(cluster_sizes)),
            'min_cluster_size': int(np.min(cluster_sizes)),
            'max_cluster_size': int(np.max(cluster_sizes))
        }
