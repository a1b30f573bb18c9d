"""
Input validation utilities for survstats.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion (except np.asarray on array-likes)
    - No default handling of edge cases
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray
from typing import Any

from survstats.core.exceptions import InvalidInputError, DimensionError


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Validate and convert input to a float64 numpy array.

    Accepts any array-like (including booleans) and converts to numpy
    array. Rejects inputs that result in object dtype (indicating mixed
    types or non-numeric data).

    Args:
        array: Input to validate
        name: Parameter name for error messages

    Returns:
        numpy.ndarray with float64 dtype

    Raises:
        InvalidInputError: If input cannot be converted to numeric array
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise InvalidInputError(f"{name}: cannot convert to array: {e}") from e

    if result.dtype == object:
        raise InvalidInputError(
            f"{name}: converted to object dtype, indicating mixed types or non-numeric data"
        )

    if result.dtype != np.bool_ and not np.issubdtype(result.dtype, np.number):
        raise InvalidInputError(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data"
        )

    return result.astype(np.float64)


def check_finite(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains no NaN or Inf values.

    Raises:
        InvalidInputError: If array contains non-finite values
    """
    if not np.all(np.isfinite(array)):
        n_nan = int(np.sum(np.isnan(array)))
        n_inf = int(np.sum(np.isinf(array)))
        raise InvalidInputError(
            f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf)"
        )


def check_non_negative(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify all entries are >= 0.

    Raises:
        InvalidInputError: If any entry is negative
    """
    n_negative = int(np.sum(array < 0))
    if n_negative > 0:
        raise InvalidInputError(
            f"{name}: must be non-negative, got {n_negative} negative "
            f"value(s) (min={float(np.min(array))})"
        )


def check_binary(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify all entries are 0 or 1.

    Raises:
        InvalidInputError: If any entry is not 0 or 1
    """
    unique = np.unique(array)
    if not np.all(np.isin(unique, [0.0, 1.0])):
        raise InvalidInputError(
            f"{name}: must contain only 0 and 1, got unique values: {unique}"
        )


def check_ndim(array: NDArray[np.floating[Any]], ndim: int, name: str) -> None:
    """
    Verify array has exactly the specified number of dimensions.

    Raises:
        DimensionError: If array has wrong number of dimensions
    """
    if array.ndim != ndim:
        raise DimensionError(
            f"{name}: expected {ndim}D array, got {array.ndim}D with shape {array.shape}"
        )


def check_1d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 1-dimensional."""
    check_ndim(array, 1, name)


def check_2d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 2-dimensional."""
    check_ndim(array, 2, name)


def check_consistent_length(
    *arrays: NDArray[np.floating[Any]],
    names: tuple[str, ...]
) -> None:
    """
    Verify all arrays have the same length (first dimension).

    Args:
        *arrays: Arrays to check
        names: Parameter names for error messages (must match number of arrays)

    Raises:
        ValueError: If number of names doesn't match number of arrays
        DimensionError: If arrays have inconsistent lengths
    """
    if len(arrays) != len(names):
        raise ValueError(
            f"Number of arrays ({len(arrays)}) must match number of names ({len(names)})"
        )

    if len(arrays) < 2:
        return

    lengths = [arr.shape[0] for arr in arrays]
    if len(set(lengths)) > 1:
        details = ", ".join(f"{name}={length}" for name, length in zip(names, lengths))
        raise DimensionError(f"Inconsistent lengths: {details}")


def check_min_samples(array: NDArray[np.floating[Any]], min_samples: int, name: str) -> None:
    """
    Verify array has at least the minimum number of samples.

    Raises:
        InvalidInputError: If array has fewer than min_samples
    """
    n = array.shape[0]
    if n < min_samples:
        raise InvalidInputError(
            f"{name}: requires at least {min_samples} samples, got {n}"
        )
