"""
Cluster centers and the per-iteration acceleration structures derived from them.
"""

import numpy as np

from . import vector_ops
from .distance import DistanceFunction


class CenterTracker:
    """
    Owns the k centers of a run together with their running sums and counts.

    Derived structures, recomputed every iteration:

    - ``sep[c]``: half the distance from center c to its nearest other center
    - ``cdist`` / ``cnum``: center norms sorted ascending, and the center
      index at each sorted position

    Args:
        centers: initial centers, shape (k, dim)
        distance: distance function used for the separations
    """

    def __init__(self, centers: np.ndarray, distance: DistanceFunction):
        self.centers = np.array(centers, dtype=np.float64, copy=True)
        self.k, self.dim = self.centers.shape
        self.distance = distance
        self.sums = np.zeros((self.k, self.dim))
        self.counts = np.zeros(self.k, dtype=np.intp)
        self.sep = np.full(self.k, np.inf)
        self.cdist = np.zeros(self.k)
        self.cnum = np.arange(self.k)

    def add_point(self, c: int, x: np.ndarray) -> None:
        vector_ops.add(self.sums[c], x)
        self.counts[c] += 1

    def move_point(self, src: int, dst: int, x: np.ndarray) -> None:
        vector_ops.subtract_add(self.sums[dst], self.sums[src], x)
        self.counts[dst] += 1
        self.counts[src] -= 1

    def means(self) -> np.ndarray:
        """Means of the current sums; empty clusters keep their current center."""
        means = self.centers.copy()
        for c in np.flatnonzero(self.counts > 0):
            means[c] = vector_ops.scale(self.sums[c], 1.0 / self.counts[c])
        return means

    def recompute_centers(self) -> np.ndarray:
        """
        Replace every non-empty center by the mean of its members.

        Returns:
            How far each center moved, in bound space.
        """
        new_centers = self.means()
        move = np.array([
            self.distance.to_bound(self.distance(old, new))
            for old, new in zip(self.centers, new_centers)
        ])
        self.centers = new_centers
        return move

    def recompute_separations(self) -> np.ndarray:
        self.sep.fill(np.inf)
        for i in range(self.k):
            ci = self.centers[i]
            for j in range(i):
                d = 0.5 * self.distance.to_bound(self.distance(ci, self.centers[j]))
                if d < self.sep[i]:
                    self.sep[i] = d
                if d < self.sep[j]:
                    self.sep[j] = d
        return self.sep

    def recompute_norm_order(self):
        norms = np.array([vector_ops.euclidean_norm(c) for c in self.centers])
        self.cnum = np.argsort(norms)
        self.cdist = norms[self.cnum]
        return self.cdist, self.cnum
