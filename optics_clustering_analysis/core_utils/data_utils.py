from __future__ import annotations

import numpy as np

from ..errors import ComputationError, InvalidInputError


def as_point_array(points: np.ndarray | list) -> np.ndarray:
    """Convert input coordinates to a validated ``(n_points, n_dims)`` float array.

    Parameters
    ----------
    points
        Array-like of shape ``(n_points, n_dims)``. An empty sequence is accepted
        and returns an array of shape ``(0, 2)``.

    Returns
    -------
    np.ndarray
        Read-only float64 copy of the coordinates.

    Raises
    ------
    InvalidInputError
        If the array is not two-dimensional, has no dimensions, or contains
        NaN or infinite values.
    """
    try:
        array = np.array(points, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"Point coordinates must be numeric: {exc}") from exc

    if array.size == 0 and array.ndim < 2:
        array = np.empty((0, 2), dtype=np.float64)

    if array.ndim != 2:
        raise InvalidInputError(
            f"Point coordinates must have shape (n_points, n_dims); got {array.shape}."
        )
    if array.shape[1] == 0:
        raise InvalidInputError("Point coordinates must have at least one dimension.")

    finite = np.isfinite(array)
    if not finite.all():
        bad_rows = np.flatnonzero(~finite.all(axis=1))
        preview = ", ".join(map(str, bad_rows[:5]))
        raise InvalidInputError(f"Non-finite coordinates for points: {preview}.")

    array.setflags(write=False)
    return array


def stack_coordinates(
    x: np.ndarray | list,
    y: np.ndarray | list,
    z: np.ndarray | list | None = None,
) -> np.ndarray:
    """Stack separate coordinate arrays into a single point array.

    Raises
    ------
    InvalidInputError
        If the coordinate arrays have different lengths.
    """
    columns = [np.asarray(x, dtype=np.float64).ravel(), np.asarray(y, dtype=np.float64).ravel()]
    if z is not None:
        columns.append(np.asarray(z, dtype=np.float64).ravel())

    lengths = {len(c) for c in columns}
    if len(lengths) != 1:
        raise InvalidInputError(
            f"Coordinate arrays have mismatched lengths: {[len(c) for c in columns]}."
        )
    return as_point_array(np.column_stack(columns))


def check_distances(distances: np.ndarray) -> np.ndarray:
    """Ensure computed distances are valid (non-negative, not NaN).

    Raises
    ------
    ComputationError
        If any distance is negative or NaN.
    """
    if distances.size and (np.isnan(distances).any() or (distances < 0).any()):
        raise ComputationError("Distance computation produced negative or NaN values.")
    return distances


__all__ = ["as_point_array", "stack_coordinates", "check_distances"]
