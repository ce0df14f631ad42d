from enum import Enum


class RunState(Enum):
    """Lifecycle of a clustering run."""
    INIT = "init"
    ITERATING = "iterating"
    CONVERGED = "converged"
    MAX_ITER_REACHED = "max_iter_reached"
