"""
Error types raised by the maximum conditional entropy core.
"""


class InfDecompError(Exception):
    """Base class for all errors raised by the information decomposition core."""


class DegenerateSupport(InfDecompError, ValueError):
    """One of X, Y, Z takes fewer than 2 values with positive probability."""


class IllConditionedConstraints(InfDecompError, RuntimeError):
    """The tangent-space projector failed its idempotence/symmetry self-check."""


class UnsupportedFeatureRequested(InfDecompError, ValueError):
    """A solver asked the evaluator for a callback it does not provide."""
