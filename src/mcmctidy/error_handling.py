"""
Error Types and Validation Utilities

This module defines the errors raised by the tidy pipeline and the small
validators shared by every call site that accepts a confidence level or a
thinning factor.

Every error is raised eagerly and aborts the whole call; no partial table is
ever returned.
"""

import numbers

import numpy as np


class TidyError(ValueError):
    """Base class for all mcmctidy errors."""


class ShapeMismatch(TidyError):
    """Chains disagree on iteration count or parameter set."""


class UnknownParameter(TidyError):
    """A requested parameter name is not present in the source."""

    def __init__(self, missing, available):
        self.missing = list(missing)
        self.available = list(available)
        super().__init__(
            f"Unknown parameter(s) {self.missing}. Available: {self.available}"
        )


class InvalidConfidenceLevel(TidyError):
    """conf_level outside the open interval (0, 1)."""


class InsufficientSamples(TidyError):
    """A summary group has fewer than 2 observations."""


class InvalidThinningFactor(TidyError):
    """Thinning step is not a positive integer."""


class MissingValues(TidyError):
    """A summary group contains NaN draws."""


def validate_conf_level(conf_level) -> float:
    """
    Check that a credible-interval level lies strictly between 0 and 1.

    Args:
        conf_level: Requested interval mass (e.g. 0.95)

    Returns:
        conf_level as a float

    Raises:
        InvalidConfidenceLevel: If conf_level is not a real number in (0, 1)
    """
    if isinstance(conf_level, bool) or not isinstance(conf_level, numbers.Real):
        raise InvalidConfidenceLevel(
            f"conf_level must be a number in (0, 1), got {conf_level!r}"
        )
    # NaN fails both comparisons
    if not 0 < conf_level < 1:
        raise InvalidConfidenceLevel(f"conf_level must be in (0, 1), got {conf_level}")
    return float(conf_level)


def validate_thin_factor(every) -> int:
    """
    Check that a thinning step is a positive integer.

    Raises:
        InvalidThinningFactor: If every is not an integer >= 1
    """
    if isinstance(every, (bool, np.bool_)) or not isinstance(every, numbers.Integral):
        raise InvalidThinningFactor(f"Thinning factor must be an integer, got {every!r}")
    if every < 1:
        raise InvalidThinningFactor(f"Thinning factor must be >= 1, got {every}")
    return int(every)


def resolve_parameters(requested, available):
    """
    Resolve a caller-supplied parameter filter against the available names.

    Args:
        requested: Iterable of parameter names, a single name, or None
        available: Ordered parameter names of the source

    Returns:
        List of names in the caller's order (all of `available` when None)

    Raises:
        UnknownParameter: If any requested name is not available
        ValueError: If a name is requested twice
    """
    available = list(available)
    if requested is None:
        return available
    if isinstance(requested, str):
        requested = [requested]
    requested = list(requested)

    missing = [name for name in requested if name not in available]
    if missing:
        raise UnknownParameter(missing, available)

    seen = set()
    duplicates = [name for name in requested if name in seen or seen.add(name)]
    if duplicates:
        raise ValueError(f"Parameter(s) requested more than once: {duplicates}")

    return requested
