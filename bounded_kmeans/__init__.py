"""
Bounded k-means
===============

K-means clustering that tracks per-point distance bounds (Hamerly) and
filters candidate centers by norm (Annulus), so most points skip most
distance computations once the clusters settle.

Example:
    >>> import numpy as np
    >>> from bounded_kmeans import KMeans
    >>> X = np.random.random((1000, 8))
    >>> model = KMeans(n_clusters=5, random_state=0).fit(X)
    >>> model.get_cluster_info()['converged']
    True
"""

from .version import __version__
from .distance import (
    CosineDistance,
    DistanceFunction,
    EuclideanDistance,
    ManhattanDistance,
    SquaredEuclideanDistance,
    get_distance,
)
from .engine import BoundedAssignmentEngine, KMeansConfig, RunState
from .evaluation import clustering_distance, fowlkes_mallows, inertia, pair_counts
from .exceptions import ConfigurationError, InvariantError
from .initialization import initialize_centers
from .kmeans import KMeans
from .result import Cluster, KMeansResult, ResultBuilder
from .store import AssignmentStore, VectorStore

__all__ = [
    "__version__",
    "KMeans",
    "BoundedAssignmentEngine",
    "KMeansConfig",
    "RunState",
    "Cluster",
    "KMeansResult",
    "ResultBuilder",
    "VectorStore",
    "AssignmentStore",
    "DistanceFunction",
    "SquaredEuclideanDistance",
    "EuclideanDistance",
    "ManhattanDistance",
    "CosineDistance",
    "get_distance",
    "initialize_centers",
    "pair_counts",
    "fowlkes_mallows",
    "clustering_distance",
    "inertia",
    "ConfigurationError",
    "InvariantError",
]
