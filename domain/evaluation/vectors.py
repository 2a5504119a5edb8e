"""Validation and coercion of paired prediction/outcome vectors."""

from collections.abc import Sequence

import numpy as np
import pandas as pd

from domain.errors import DegenerateInputError, ShapeMismatchError

ArrayLike = np.ndarray | pd.Series | Sequence


def as_bool_vector(values: ArrayLike, name: str = "values") -> np.ndarray:
    """
    Coerce a boolean-valued 1-D vector to a numpy bool array.

    Accepts bool arrays and numeric arrays holding only 0/1. Anything else
    (a raw score, a missing value) is rejected: scores must be thresholded
    by the caller first.

    Raises:
        ValueError: If the vector is not 1-D or holds non-boolean values
    """
    arr = np.asarray(values)
    if arr.ndim != 1:
        raise ValueError(f"{name} must be 1-dimensional, got shape {arr.shape}")
    if arr.dtype == bool:
        return arr

    if pd.isna(arr).any():
        raise ValueError(f"{name} contains missing values; resolve them before evaluation")
    try:
        numeric = arr.astype(float)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name} must be boolean-valued, got dtype {arr.dtype}") from e

    if not np.isin(numeric, (0.0, 1.0)).all():
        bad = np.unique(numeric[~np.isin(numeric, (0.0, 1.0))])[:5]
        raise ValueError(f"{name} must be boolean-valued (0/1); found {bad.tolist()}. Threshold scores first.")
    return numeric.astype(bool)


def as_score_vector(values: ArrayLike, name: str = "scores") -> np.ndarray:
    """Coerce a real-valued 1-D vector to float, rejecting NaN and infinities."""
    arr = np.asarray(values, dtype=float)
    if arr.ndim != 1:
        raise ValueError(f"{name} must be 1-dimensional, got shape {arr.shape}")
    if not np.isfinite(arr).all():
        raise ValueError(f"{name} contains missing or infinite values; drop incomplete cases first")
    return arr


def check_paired(first: np.ndarray, second: np.ndarray, first_name: str, second_name: str) -> int:
    """
    Check that two vectors are aligned by index and non-empty.

    Returns:
        The shared length

    Raises:
        ShapeMismatchError: If the lengths differ
        DegenerateInputError: If the vectors are empty
    """
    if len(first) != len(second):
        raise ShapeMismatchError(
            f"{first_name} and {second_name} must have the same length, got {len(first)} and {len(second)}"
        )
    if len(first) == 0:
        raise DegenerateInputError(f"{first_name} and {second_name} are empty")
    return len(first)
