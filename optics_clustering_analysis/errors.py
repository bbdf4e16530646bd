"""Exception hierarchy for the OPTICS clustering library.

Input and configuration problems are ``ValueError`` subclasses so callers that
already guard numerical code with ``except ValueError`` keep working.
"""

from __future__ import annotations


class OpticsError(Exception):
    """Base class for all errors raised by this package."""


class InvalidInputError(OpticsError, ValueError):
    """Point coordinates are malformed (non-finite, wrong shape, mismatched lengths)."""


class InvalidConfigurationError(OpticsError, ValueError):
    """A clustering parameter is outside its valid range."""


class ComputationError(OpticsError, RuntimeError):
    """An internal invariant was violated while clustering.

    This signals a defect rather than a user error. No partial result is
    returned when it is raised.
    """


class OrderingAbortedError(ComputationError):
    """The reachability traversal was stopped by the caller."""


__all__ = [
    "OpticsError",
    "InvalidInputError",
    "InvalidConfigurationError",
    "ComputationError",
    "OrderingAbortedError",
]
