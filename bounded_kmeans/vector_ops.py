"""
Elementary in-place vector arithmetic used to keep cluster sums current.

Only the destination arguments are mutated; every other input is read-only.
"""

import numpy as np


def add(dst: np.ndarray, src: np.ndarray) -> np.ndarray:
    """dst += src, in place."""
    np.add(dst, src, out=dst)
    return dst


def subtract_add(dst_add: np.ndarray, dst_sub: np.ndarray, v: np.ndarray) -> None:
    """
    Apply ``dst_add += v`` and ``dst_sub -= v`` together.

    Used when a point moves from one cluster to another, so both running
    sums change in the same step.
    """
    np.add(dst_add, v, out=dst_add)
    np.subtract(dst_sub, v, out=dst_sub)


def scale(v: np.ndarray, factor: float) -> np.ndarray:
    return np.multiply(v, factor)


def euclidean_norm(v: np.ndarray) -> float:
    return float(np.sqrt(np.dot(v, v)))
