"""
Bound-pruned Lloyd iterations (Hamerly and Annulus k-means).

The engine keeps, for every point, an upper bound on the distance to its own
center and a lower bound on the distance to every other center. A point whose
upper bound is below its lower bound, or below half the distance from its
center to the nearest other center, cannot change cluster and is skipped
without computing any distance. The Annulus variant additionally sorts the
centers by norm and only examines centers whose norm lies within a radius of
the point's norm.

References:
    G. Hamerly and J. Drake, Accelerating Lloyd's Algorithm for k-Means
    Clustering, in: Partitional Clustering Algorithms, 2015.

    J. Drake, Faster k-means clustering, Masters Thesis, 2013.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import numpy as np

from .centers import CenterTracker
from .distance import DistanceFunction, get_distance
from .exceptions import ConfigurationError, InvariantError
from .result import KMeansResult, ResultBuilder
from .state import RunState
from .store import AssignmentStore, VectorStore

VARIANTS = ("lloyd", "hamerly", "annulus")


@dataclass
class KMeansConfig:
    """Configuration for a single clustering run."""
    k: int
    max_iter: int = 300
    distance: Union[str, DistanceFunction] = "sqeuclidean"
    variant: str = "annulus"
    varstat: bool = False
    verbose: bool = False
    # Verify bound soundness after every pass (slow, O(n*k))
    check_invariants: bool = False


def effective_variant(variant: str, distance: DistanceFunction) -> str:
    """Downgrade the variant to what the distance function can support."""
    if not distance.is_metric:
        return "lloyd"
    if variant == "annulus" and not distance.is_euclidean:
        return "hamerly"
    return variant


def _nearest_two(D: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Nearest and second nearest column per row; the smallest index wins ties."""
    n, k = D.shape
    rows = np.arange(n)
    nearest = np.argmin(D, axis=1)
    min1 = D[rows, nearest]
    if k < 2:
        return nearest, np.full(n, -1, dtype=np.intp), min1, np.full(n, np.inf)
    others = D.copy()
    others[rows, nearest] = np.inf
    second = np.argmin(others, axis=1)
    return nearest, second, min1, others[rows, second]


class BoundedAssignmentEngine:
    """
    State for one k-means run over a fixed data set.

    Args:
        data: VectorStore or array-like of shape (n_samples, n_features)
        initial_centers: array of shape (k, n_features)
        config: run configuration

    Attributes:
        state: current RunState
        n_iter: number of assignment passes performed
        changed_history: points that changed cluster in each pass
        distance_computations: point-to-center distances evaluated so far
    """

    def __init__(self, data, initial_centers, config: KMeansConfig):
        self.config = config
        self.store = data if isinstance(data, VectorStore) else VectorStore(data)
        self.distance = get_distance(config.distance)
        n, dim = len(self.store), self.store.dim

        k = config.k
        if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
            raise ConfigurationError(f"k must be an integer, got {k!r}")
        if k <= 0 or k > n:
            raise ConfigurationError(f"k must be in [1, {n}], got {k}")
        if config.max_iter <= 0:
            raise ConfigurationError(f"max_iter must be positive, got {config.max_iter}")
        if config.variant not in VARIANTS:
            raise ConfigurationError(
                f"Unknown variant: {config.variant!r}. Choose one of {VARIANTS}"
            )
        centers = np.asarray(initial_centers, dtype=np.float64)
        if centers.shape != (k, dim):
            raise ConfigurationError(
                f"Initial centers must have shape {(k, dim)}, got {centers.shape}"
            )
        if not np.all(np.isfinite(centers)):
            raise ConfigurationError("Initial centers contain NaN or infinity")

        self.k = int(k)
        self.variant = effective_variant(config.variant, self.distance)
        if self.variant != config.variant and config.verbose:
            print(f"{self.distance.name} distance does not support {config.variant} "
                  f"pruning, using {self.variant}")

        self.tracker = CenterTracker(centers, self.distance)
        self.assignments = AssignmentStore(n, self.k)
        self.state = RunState.INIT
        self.n_iter = 0
        self.changed_history: List[int] = []
        self.distance_computations = 0

    @property
    def labels(self) -> np.ndarray:
        return self.assignments.cluster

    @property
    def centers(self) -> np.ndarray:
        return self.tracker.centers

    def _dist(self, x: np.ndarray, c: int) -> float:
        self.distance_computations += 1
        return self.distance(x, self.tracker.centers[c])

    def initial_assignment(self) -> int:
        """
        Assign every point to its nearest center with exact bounds.

        Returns:
            Number of points whose cluster differs from their starting cluster.
        """
        X = self.store.data
        tracker, a = self.tracker, self.assignments
        D = self.distance.pairwise(X, tracker.centers)
        self.distance_computations += D.size
        nearest, second, min1, min2 = _nearest_two(D)

        changed = int(np.count_nonzero(nearest != a.cluster))
        a.cluster[:] = nearest
        a.second[:] = second
        a.upper[:] = self.distance.to_bound(min1)
        a.lower[:] = self.distance.to_bound(min2)

        tracker.sums.fill(0.0)
        np.add.at(tracker.sums, nearest, X)
        tracker.counts[:] = np.bincount(nearest, minlength=self.k)
        return changed

    def _full_pass(self) -> int:
        """Exact reassignment against every center (no pruning)."""
        X = self.store.data
        tracker, a = self.tracker, self.assignments
        D = self.distance.pairwise(X, tracker.centers)
        self.distance_computations += D.size
        nearest, second, min1, min2 = _nearest_two(D)

        moved = np.flatnonzero(nearest != a.cluster)
        for i in moved:
            tracker.move_point(int(a.cluster[i]), int(nearest[i]), X[i])
        a.cluster[:] = nearest
        a.second[:] = second
        a.upper[:] = self.distance.to_bound(min1)
        a.lower[:] = self.distance.to_bound(min2)
        return len(moved)

    def _bounded_pass(self) -> int:
        X = self.store.data
        tracker, a = self.tracker, self.assignments
        to_bound = self.distance.to_bound
        annulus = self.variant == "annulus"
        norms = self.store.norms() if annulus else None
        sep, cdist, cnum = tracker.sep, tracker.cdist, tracker.cnum
        k = self.k
        changed = 0

        for i in range(len(a)):
            cur = int(a.cluster[i])
            z = a.lower[i]
            sa = sep[cur]
            u = a.upper[i]
            if u < z or u < sa:
                continue
            # Tighten the upper bound and test again
            x = X[i]
            curd2 = self._dist(x, cur)
            u = to_bound(curd2)
            a.upper[i] = u
            if u < z or u < sa:
                continue

            if annulus:
                sec = int(a.second[i])
                secd2 = self._dist(x, sec)
                r = max(u, to_bound(secd2))
                norm = norms[i]
                if secd2 < curd2 or (secd2 == curd2 and sec < cur):
                    min1, min2, min_index, sec_index = secd2, curd2, sec, cur
                else:
                    min1, min2, min_index, sec_index = curd2, secd2, cur, sec
                for pos in range(k):
                    c = int(cnum[pos])
                    if c == cur or c == sec:
                        continue
                    d = cdist[pos] - norm
                    if -d > r:
                        continue  # not yet in the annulus
                    if d > r:
                        break  # all remaining centers are further out
                    dist = self._dist(x, c)
                    if dist < min1 or (dist == min1 and c < min_index):
                        min2, sec_index = min1, min_index
                        min1, min_index = dist, c
                    elif dist < min2 or (dist == min2 and c < sec_index):
                        min2, sec_index = dist, c
            else:
                min1 = min2 = np.inf
                min_index = sec_index = -1
                for c in range(k):
                    dist = curd2 if c == cur else self._dist(x, c)
                    if dist < min1:
                        min2, sec_index = min1, min_index
                        min1, min_index = dist, c
                    elif dist < min2:
                        min2, sec_index = dist, c

            if min_index != cur:
                tracker.move_point(cur, min_index, x)
                a.cluster[i] = min_index
                a.upper[i] = u if min1 == curd2 else to_bound(min1)
                changed += 1
            a.second[i] = sec_index
            a.lower[i] = u if min2 == curd2 else to_bound(min2)
        return changed

    def step(self) -> int:
        """
        Run one assignment pass. The first pass is the full initial
        assignment; later passes first move the centers to the means of the
        previous assignment.

        Returns:
            Number of points that changed cluster.
        """
        if self.n_iter == 0:
            changed = self.initial_assignment()
        else:
            move = self.tracker.recompute_centers()
            self.assignments.update_bounds(move)
            if self.variant == "lloyd":
                changed = self._full_pass()
            else:
                self.tracker.recompute_separations()
                if self.variant == "annulus":
                    self.tracker.recompute_norm_order()
                changed = self._bounded_pass()
        self.n_iter += 1
        self.changed_history.append(changed)
        if self.config.check_invariants:
            self.check_bounds()
        return changed

    def run(self, max_iter: Optional[int] = None) -> RunState:
        """
        Iterate until no point changes cluster or the iteration cap is hit.

        Args:
            max_iter: Cap on assignment passes for this call (defaults to the
                configured max_iter)

        Returns:
            RunState.CONVERGED or RunState.MAX_ITER_REACHED
        """
        if max_iter is None:
            max_iter = self.config.max_iter
        if max_iter <= 0:
            raise ConfigurationError(f"max_iter must be positive, got {max_iter}")

        self.state = RunState.ITERATING
        for _ in range(max_iter):
            changed = self.step()
            if self.config.verbose:
                print(f"Iteration {self.n_iter}: {changed} points changed cluster")
            # The initial pass is a fixed point only when there is nothing to move
            if changed == 0 and (self.n_iter > 1 or self.k == 1):
                self.state = RunState.CONVERGED
                break
        else:
            self.state = RunState.MAX_ITER_REACHED

        if self.config.verbose:
            if self.state is RunState.CONVERGED:
                print(f"Converged after {self.n_iter} iterations")
            else:
                print(f"Stopped after reaching max_iter={max_iter} "
                      f"({self.changed_history[-1]} points still changing)")
            print(f"Distance computations: {self.distance_computations}")
        return self.state

    def check_bounds(self, tol: float = 1e-9) -> None:
        """
        Verify bound soundness and the sum/count bookkeeping against the
        current centers.

        Raises:
            InvariantError: if any invariant does not hold
        """
        X = self.store.data
        tracker, a = self.tracker, self.assignments
        rows = np.arange(len(a))
        bounded = self.distance.to_bound(self.distance.pairwise(X, tracker.centers))
        if np.any(bounded < 0):
            raise InvariantError("Negative distance")

        own = bounded[rows, a.cluster]
        bad = np.flatnonzero(a.upper < own - tol * (1.0 + own))
        if len(bad):
            raise InvariantError(f"Upper bound below true distance for points {bad[:10].tolist()}")

        if self.k > 1:
            others = bounded.copy()
            others[rows, a.cluster] = np.inf
            nearest_other = others.min(axis=1)
            bad = np.flatnonzero(a.lower > nearest_other + tol * (1.0 + nearest_other))
            if len(bad):
                raise InvariantError(f"Lower bound above true distance for points {bad[:10].tolist()}")

        if not np.array_equal(tracker.counts, a.sizes()):
            raise InvariantError("Cluster counts disagree with assignments")
        expected = np.zeros_like(tracker.sums)
        np.add.at(expected, a.cluster, X)
        if not np.allclose(tracker.sums, expected, rtol=1e-7, atol=1e-7):
            raise InvariantError("Cluster sums disagree with assignments")

    def result(self, varstat: Optional[bool] = None) -> KMeansResult:
        if varstat is None:
            varstat = self.config.varstat
        return ResultBuilder(self).build(varstat=varstat)
