"""
Comparing clusterings and scoring k-means solutions.
"""

from typing import NamedTuple

import numpy as np


class PairCounts(NamedTuple):
    """Object pairs by whether the two clusterings put them together."""
    in_both: int
    in_first_only: int
    in_second_only: int
    in_neither: int


def _pairs(counts: np.ndarray) -> int:
    counts = counts.astype(np.int64)
    return int((counts * (counts - 1) // 2).sum())


def pair_counts(labels_a, labels_b) -> PairCounts:
    """
    Pair-counting contingency of two flat clusterings of the same objects.

    Args:
        labels_a: cluster label per object in the first clustering
        labels_b: cluster label per object in the second clustering
    """
    a = np.asarray(labels_a)
    b = np.asarray(labels_b)
    if a.shape != b.shape or a.ndim != 1:
        raise ValueError(f"Label arrays must be 1-D and equally long, got {a.shape} and {b.shape}")

    _, a_idx = np.unique(a, return_inverse=True)
    _, b_idx = np.unique(b, return_inverse=True)
    table = np.zeros((a_idx.max(initial=-1) + 1, b_idx.max(initial=-1) + 1), dtype=np.int64)
    np.add.at(table, (a_idx, b_idx), 1)

    in_both = _pairs(table.ravel())
    same_a = _pairs(table.sum(axis=1))
    same_b = _pairs(table.sum(axis=0))
    n = len(a)
    total = n * (n - 1) // 2
    return PairCounts(
        in_both=in_both,
        in_first_only=same_a - in_both,
        in_second_only=same_b - in_both,
        in_neither=total - same_a - same_b + in_both,
    )


def fowlkes_mallows(labels_a, labels_b) -> float:
    """
    Fowlkes-Mallows index: geometric mean of pair precision and pair recall.

    1.0 for identical partitions (up to renaming). Two all-singleton
    clusterings also score 1.0.

    Reference:
        E. B. Fowlkes, C. L. Mallows, A method for comparing two hierarchical
        clusterings, JASA 78(383), 1983.
    """
    pc = pair_counts(labels_a, labels_b)
    same_a = pc.in_both + pc.in_first_only
    same_b = pc.in_both + pc.in_second_only
    if same_a == 0 and same_b == 0:
        return 1.0
    if same_a == 0 or same_b == 0:
        return 0.0
    return float(pc.in_both / np.sqrt(same_a * same_b))


def clustering_distance(labels_a, labels_b) -> float:
    """1 - Fowlkes-Mallows. Not a metric."""
    return 1.0 - fowlkes_mallows(labels_a, labels_b)


def inertia(X, labels, centers) -> float:
    """Within-cluster sum of squared Euclidean distances."""
    X = np.asarray(X, dtype=np.float64)
    centers = np.asarray(centers, dtype=np.float64)
    return float(np.sum((X - centers[np.asarray(labels)]) ** 2))
