"""
Input validation utilities.
"""

import numbers

from ..core.exceptions import InvalidParameterError


# Maximum limits
MAX_DIMENSION = 65536


def validate_positive_int(name: str, value: int, max_value: int = None) -> int:
    """
    Validate a strictly positive integer parameter.

    Args:
        name: Parameter name used in the error message
        value: The value to validate
        max_value: Optional inclusive upper bound

    Returns:
        The validated value as a Python int

    Raises:
        InvalidParameterError: If value is not a positive integer
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidParameterError(
            f"{name} must be an integer, got {type(value).__name__}"
        )

    if value < 1:
        raise InvalidParameterError(f"{name} must be at least 1, got {value}")

    if max_value is not None and value > max_value:
        raise InvalidParameterError(f"{name} too large: {value} (max {max_value})")

    return int(value)


def validate_dimension(dimension: int, max_dim: int = MAX_DIMENSION) -> int:
    """
    Validate vector dimension.

    Raises:
        InvalidParameterError: If dimension is invalid
    """
    return validate_positive_int("dimension", dimension, max_dim)


def validate_k(k: int, max_k: int = None) -> int:
    """
    Validate k (number of results). Unbounded unless max_k is given.

    Raises:
        InvalidParameterError: If k is invalid
    """
    return validate_positive_int("k", k, max_k)


def validate_probe_ratio(probe_ratio: float) -> float:
    """
    Validate the relative probe radius. Must be >= 0; ``inf`` leaves only
    max_nprobe to bound the scan.
    """
    if isinstance(probe_ratio, bool) or not isinstance(probe_ratio, numbers.Real):
        raise InvalidParameterError(
            f"probe_ratio must be a number, got {type(probe_ratio).__name__}"
        )

    # NaN fails every comparison, so check the positive form
    if not (probe_ratio >= 0):
        raise InvalidParameterError(f"probe_ratio must be >= 0, got {probe_ratio}")

    return float(probe_ratio)


def validate_refine_factor(refine_factor: int) -> int:
    """Validate the candidate-pool multiplier (>= 1)."""
    return validate_positive_int("refine_factor", refine_factor)
