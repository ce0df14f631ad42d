"""
Conversion of a finished run into cluster groups and summary statistics.
"""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from .state import RunState


@dataclass
class Cluster:
    """One output cluster. ``variance`` is the sum of squared deviations, if computed."""
    name: str
    center: np.ndarray
    members: np.ndarray
    variance: Optional[float] = None

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def is_empty(self) -> bool:
        return self.size == 0


@dataclass
class KMeansResult:
    labels: np.ndarray
    centers: np.ndarray
    clusters: List[Cluster]
    state: RunState
    n_iter: int
    inertia: float
    changed_history: List[int] = field(default_factory=list)
    distance_computations: int = 0
    variant: str = "annulus"

    @property
    def converged(self) -> bool:
        return self.state is RunState.CONVERGED

    @property
    def sizes(self) -> np.ndarray:
        return np.array([c.size for c in self.clusters], dtype=np.intp)

    def cluster_of(self, i: int) -> int:
        return int(self.labels[i])

    def to_dict(self) -> dict:
        """JSON-friendly summary."""
        return {
            "state": self.state.value,
            "variant": self.variant,
            "n_iter": self.n_iter,
            "inertia": float(self.inertia),
            "changed_history": [int(c) for c in self.changed_history],
            "distance_computations": int(self.distance_computations),
            "labels": self.labels.tolist(),
            "clusters": [
                {
                    "name": c.name,
                    "size": c.size,
                    "center": c.center.tolist(),
                    "variance": c.variance,
                }
                for c in self.clusters
            ],
        }


class ResultBuilder:
    """
    Builds a KMeansResult from a finished BoundedAssignmentEngine.

    Final centers are the means of the final members; an empty cluster keeps
    its last center and is reported with zero members.
    """

    def __init__(self, engine):
        self.engine = engine

    def build(self, varstat: bool = False) -> KMeansResult:
        engine = self.engine
        X = engine.store.data
        assignments = engine.assignments
        labels = assignments.cluster.copy()
        centers = engine.tracker.means()

        sq_dev = np.sum((X - centers[labels]) ** 2, axis=1)
        clusters = []
        for c in range(engine.k):
            members = assignments.members(c)
            variance = float(sq_dev[members].sum()) if varstat else None
            clusters.append(Cluster(
                name=f"Cluster {c}",
                center=centers[c],
                members=members,
                variance=variance,
            ))

        return KMeansResult(
            labels=labels,
            centers=centers,
            clusters=clusters,
            state=engine.state,
            n_iter=engine.n_iter,
            inertia=float(sq_dev.sum()),
            changed_history=list(engine.changed_history),
            distance_computations=engine.distance_computations,
            variant=engine.variant,
        )
