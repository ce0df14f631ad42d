"""
Seeding strategies that pick the k initial centers.
"""

from typing import Optional, Union

import numpy as np
from sklearn.utils import check_random_state

from .exceptions import ConfigurationError

INIT_METHODS = ("k-means++", "random", "first")


def kmeans_plus_plus(X: np.ndarray, k: int, random_state=None) -> np.ndarray:
    """K-means++ initialization with vectorized distance updates."""
    rng = check_random_state(random_state)
    n_samples, n_features = X.shape
    centroids = np.zeros((k, n_features))

    # First centroid uniformly at random
    centroids[0] = X[rng.randint(n_samples)]
    closest_sq = np.sum((X - centroids[0]) ** 2, axis=1)

    for c_id in range(1, k):
        total = closest_sq.sum()
        if total <= 0:
            # Every point coincides with a chosen centroid
            next_idx = rng.randint(n_samples)
        else:
            # Probability proportional to squared distance to the nearest centroid
            cumulative_probs = np.cumsum(closest_sq / total)
            next_idx = int(np.searchsorted(cumulative_probs, rng.rand()))
            next_idx = min(next_idx, n_samples - 1)
        centroids[c_id] = X[next_idx]
        closest_sq = np.minimum(closest_sq, np.sum((X - centroids[c_id]) ** 2, axis=1))

    return centroids


def initialize_centers(
    X: np.ndarray,
    k: int,
    init: Union[str, np.ndarray] = "k-means++",
    random_state: Optional[Union[int, np.random.RandomState]] = None,
) -> np.ndarray:
    """
    Choose k initial centers from the rows of X.

    Args:
        X: Data of shape (n_samples, n_features)
        k: Number of centers
        init: 'k-means++', 'random', 'first', or an explicit (k, n_features) array
        random_state: Seed or RandomState for the randomized methods

    Returns:
        Array of shape (k, n_features)
    """
    n_samples, n_features = X.shape
    if k <= 0 or k > n_samples:
        raise ConfigurationError(f"k must be in [1, {n_samples}], got {k}")

    if not isinstance(init, str):
        centers = np.array(init, dtype=np.float64)
        if centers.shape != (k, n_features):
            raise ConfigurationError(
                f"Initial centers must have shape {(k, n_features)}, got {centers.shape}"
            )
        return centers

    if init == "k-means++":
        return kmeans_plus_plus(X, k, random_state)
    elif init == "random":
        rng = check_random_state(random_state)
        random_indices = rng.choice(n_samples, k, replace=False)
        return X[random_indices].astype(np.float64)
    elif init == "first":
        return X[:k].astype(np.float64)
    else:
        raise ConfigurationError(f"Unknown initialization method: {init}")
