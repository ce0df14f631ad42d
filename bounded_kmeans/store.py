"""
Dense per-point storage for a clustering run.

Points get contiguous integer ids ``0..n-1`` when they are loaded, so all
per-point state is kept in flat numpy arrays indexed by id.
"""

from typing import Iterator, NamedTuple, Optional

import numpy as np
from sklearn.utils import check_array


class VectorStore:
    """
    Read-only collection of fixed-dimensionality vectors.

    Args:
        X: array-like of shape (n_samples, n_features)
    """

    def __init__(self, X):
        data = check_array(X, dtype=np.float64, ensure_2d=True, copy=True)
        data.setflags(write=False)
        self._data = data
        self._norms: Optional[np.ndarray] = None

    def __len__(self) -> int:
        return self._data.shape[0]

    @property
    def dim(self) -> int:
        return self._data.shape[1]

    @property
    def data(self) -> np.ndarray:
        return self._data

    def ids(self) -> Iterator[int]:
        return iter(range(len(self)))

    def get(self, i: int) -> np.ndarray:
        if not 0 <= i < len(self):
            raise IndexError(f"Unknown point id: {i}")
        return self._data[i]

    def norms(self) -> np.ndarray:
        """Euclidean norm of every point, computed once and cached."""
        if self._norms is None:
            self._norms = np.sqrt(np.einsum("nd,nd->n", self._data, self._data))
        return self._norms


class Assignment(NamedTuple):
    cluster_id: int
    second_cluster_id: int
    upper_bound: float
    lower_bound: float


class AssignmentStore:
    """
    Structure-of-arrays holding each point's cluster, second-nearest cluster,
    upper bound and lower bound.

    Bounds are kept in non-squared distance space. Every point starts in
    cluster 0 with no second cluster and unknown (infinite) bounds.
    """

    def __init__(self, n: int, k: int):
        self.k = k
        self.cluster = np.zeros(n, dtype=np.intp)
        self.second = np.full(n, -1, dtype=np.intp)
        self.upper = np.full(n, np.inf)
        self.lower = np.full(n, np.inf)

    def __len__(self) -> int:
        return self.cluster.shape[0]

    def _check(self, i: int) -> None:
        if not 0 <= i < len(self):
            raise IndexError(f"Unknown point id: {i}")

    def get(self, i: int) -> Assignment:
        self._check(i)
        return Assignment(
            int(self.cluster[i]),
            int(self.second[i]),
            float(self.upper[i]),
            float(self.lower[i]),
        )

    def set(self, i: int, cluster_id: int, second_cluster_id: int,
            upper_bound: float, lower_bound: float) -> None:
        self._check(i)
        self.cluster[i] = cluster_id
        self.second[i] = second_cluster_id
        self.upper[i] = upper_bound
        self.lower[i] = lower_bound

    def members(self, c: int) -> np.ndarray:
        """Ids currently assigned to cluster c, rebuilt from the label array."""
        return np.flatnonzero(self.cluster == c)

    def sizes(self) -> np.ndarray:
        return np.bincount(self.cluster, minlength=self.k)

    def update_bounds(self, move: np.ndarray) -> None:
        """
        Loosen the bounds after the centers moved by ``move`` (bound space).

        The upper bound grows by the movement of the point's own center; the
        lower bound shrinks by the largest movement of any other center.
        """
        self.upper += move[self.cluster]
        if self.k < 2:
            return
        order = np.argsort(move)
        top, top_value, runner_up = order[-1], move[order[-1]], move[order[-2]]
        delta = np.where(self.cluster == top, runner_up, top_value)
        self.lower -= delta
