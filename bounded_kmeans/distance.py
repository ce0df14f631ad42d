"""
Pluggable distance functions for k-means.

Each function carries three flags the bounded engine relies on:

- ``squared``: values are squared distances, so bounds take one square root
  per comparison (``to_bound``).
- ``is_metric``: the triangle inequality holds in bound space, which is what
  the Hamerly upper/lower bounds need.
- ``is_euclidean``: centers and points live in Euclidean geometry, which is
  what the annulus norm filter needs.
"""

from typing import Union

import numpy as np
from sklearn.utils import gen_batches

from .exceptions import ConfigurationError


class DistanceFunction(object):
    """Base class. Subclasses implement ``__call__`` and ``_pairwise_block``."""

    name = "abstract"
    squared = False
    is_metric = True
    is_euclidean = False
    # MiB allowed for the (rows, k, dim) temporaries of one block of rows
    working_memory = 32

    def __call__(self, a: np.ndarray, b: np.ndarray) -> float:
        raise NotImplementedError

    def _pairwise_block(self, X: np.ndarray, C: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def pairwise(self, X: np.ndarray, C: np.ndarray) -> np.ndarray:
        """
        Native distances from every row of X to every row of C, shape (n, k).

        Rows are processed in blocks so the temporaries stay within
        ``working_memory`` regardless of n.
        """
        n, k = X.shape[0], C.shape[0]
        row_bytes = 8 * k * max(1, X.shape[1])
        batch_size = max(1, int(self.working_memory * 2 ** 20 // row_bytes))
        out = np.empty((n, k))
        for batch in gen_batches(n, batch_size):
            out[batch] = self._pairwise_block(X[batch], C)
        return out

    def to_bound(self, d):
        """Convert a native value (or array of values) to bound space."""
        return np.sqrt(d) if self.squared else d

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class SquaredEuclideanDistance(DistanceFunction):
    name = "sqeuclidean"
    squared = True
    is_metric = True
    is_euclidean = True

    def __call__(self, a, b):
        diff = a - b
        return float(np.dot(diff, diff))

    def _pairwise_block(self, X, C):
        diff = X[:, np.newaxis, :] - C[np.newaxis, :, :]
        return np.einsum("nkd,nkd->nk", diff, diff)


class EuclideanDistance(SquaredEuclideanDistance):
    name = "euclidean"
    squared = False

    def __call__(self, a, b):
        return float(np.linalg.norm(a - b))

    def _pairwise_block(self, X, C):
        return np.sqrt(super()._pairwise_block(X, C))


class ManhattanDistance(DistanceFunction):
    name = "manhattan"
    squared = False
    is_metric = True
    is_euclidean = False

    def __call__(self, a, b):
        return float(np.abs(a - b).sum())

    def _pairwise_block(self, X, C):
        return np.abs(X[:, np.newaxis, :] - C[np.newaxis, :, :]).sum(axis=2)


class CosineDistance(DistanceFunction):
    """1 - cosine similarity. Not a metric, so no bound pruning applies."""

    name = "cosine"
    squared = False
    is_metric = False
    is_euclidean = False

    def __call__(self, a, b):
        na = np.linalg.norm(a)
        nb = np.linalg.norm(b)
        if na == 0.0 or nb == 0.0:
            return 0.0 if na == nb else 1.0
        return float(max(0.0, 1.0 - np.dot(a, b) / (na * nb)))

    def _pairwise_block(self, X, C):
        nx = np.linalg.norm(X, axis=1)
        nc = np.linalg.norm(C, axis=1)
        denom = np.outer(nx, nc)
        with np.errstate(divide="ignore", invalid="ignore"):
            sim = np.where(denom > 0, (X @ C.T) / denom, 0.0)
        d = np.maximum(0.0, 1.0 - sim)
        # Both zero vectors: identical
        d[np.outer(nx == 0, nc == 0)] = 0.0
        return d


DISTANCES = {
    cls.name: cls
    for cls in (SquaredEuclideanDistance, EuclideanDistance, ManhattanDistance, CosineDistance)
}


def get_distance(distance: Union[str, DistanceFunction, None]) -> DistanceFunction:
    """Resolve a distance name (or pass an instance through)."""
    if distance is None:
        return SquaredEuclideanDistance()
    if isinstance(distance, DistanceFunction):
        return distance
    try:
        return DISTANCES[distance]()
    except (KeyError, TypeError):
        raise ConfigurationError(
            f"Unknown distance function: {distance!r}. "
            f"Choose one of {sorted(DISTANCES)}"
        ) from None
