"""
Exceptions raised by the bounded k-means package.
"""


class ConfigurationError(ValueError):
    """Invalid clustering setup, rejected before any work is done."""


class InvariantError(AssertionError):
    """An internal bound or bookkeeping invariant does not hold.

    This signals a programming error, never a property of the input data.
    """
