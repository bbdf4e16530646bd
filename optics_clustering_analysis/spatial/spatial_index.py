"""Static k-d tree index for radius and k-nearest-neighbour queries.

The index wraps :class:`scipy.spatial.cKDTree` and re-sorts every result by
``(distance, original index)`` so that ties are resolved identically on every
run. Clustering built on top of it is therefore reproducible.
"""

from __future__ import annotations

import math
from typing import List, Tuple

import numpy as np
from scipy.spatial import cKDTree

from ..core_utils.data_utils import as_point_array, check_distances, stack_coordinates
from ..errors import InvalidConfigurationError, InvalidInputError

# Relative slack applied to the k-th distance so that points tied with the
# k-th neighbour are always among the candidates.
_TIE_TOLERANCE = 1e-9


class SpatialIndex:
    """Read-only spatial index over ``N`` points in ``D`` dimensions.

    Instances are built once with :meth:`build` (or :meth:`from_coordinates`)
    and never modified, so they can be shared between threads.
    """

    def __init__(self, points: np.ndarray):
        self._points = as_point_array(points)
        self._tree = cKDTree(self._points) if len(self._points) else None

    # ---------------- Constructors ----------------

    @classmethod
    def build(cls, points: np.ndarray | list) -> "SpatialIndex":
        """Build the index from an ``(n_points, n_dims)`` array.

        Raises
        ------
        InvalidInputError
            If the coordinates are not a finite two-dimensional array.
        """
        return cls(points)

    @classmethod
    def from_coordinates(cls, x, y, z=None) -> "SpatialIndex":
        """Build the index from separate x, y (and optional z) coordinate arrays."""
        return cls(stack_coordinates(x, y, z))

    # ---------------- Properties ----------------

    @property
    def points(self) -> np.ndarray:
        return self._points

    @property
    def n_points(self) -> int:
        return int(self._points.shape[0])

    @property
    def n_dims(self) -> int:
        return int(self._points.shape[1])

    def __len__(self) -> int:
        return self.n_points

    def bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return the per-dimension minimum and maximum coordinates."""
        if self.n_points == 0:
            zeros = np.zeros(self.n_dims)
            return zeros, zeros.copy()
        return self._points.min(axis=0), self._points.max(axis=0)

    # ---------------- Queries ----------------

    def query(self, point, radius: float) -> frozenset:
        """Return the indices of all points within ``radius`` of ``point`` (inclusive)."""
        indices, _ = self._sorted_within(self._as_query_point(point), radius)
        return frozenset(int(i) for i in indices)

    def neighbours(self, index: int, radius: float) -> Tuple[np.ndarray, np.ndarray]:
        """Return the neighbours of an indexed point, the point itself included.

        Returns
        -------
        tuple[np.ndarray, np.ndarray]
            ``(indices, distances)`` sorted by distance, ties by index.
        """
        if not 0 <= index < self.n_points:
            raise IndexError(f"Point index {index} out of range for {self.n_points} points.")
        return self._sorted_within(self._points[index], radius)

    def k_nearest(self, point, k: int) -> List[Tuple[int, float]]:
        """Return the ``k`` nearest points as ``(index, distance)`` pairs, ascending.

        When several points are tied at the k-th distance the ones with the
        smallest original index are returned.
        """
        if isinstance(k, bool) or not isinstance(k, (int, np.integer)) or k < 1:
            raise InvalidConfigurationError(f"k must be a positive integer; got {k!r}.")
        query_point = self._as_query_point(point)
        if self._tree is None:
            return []
        k = min(int(k), self.n_points)

        distances, _ = self._tree.query(query_point, k=k)
        kth = float(np.max(np.atleast_1d(distances)))
        indices, dists = self._sorted_within(query_point, kth * (1.0 + _TIE_TOLERANCE) + _TIE_TOLERANCE)
        return [(int(i), float(d)) for i, d in zip(indices[:k], dists[:k])]

    def nearest_neighbour_distances(
        self, k: int = 1, samples: int | None = None, seed: int | None = None
    ) -> np.ndarray:
        """Distance from points to their k-th nearest other point.

        Parameters
        ----------
        k
            Neighbour rank, clipped to ``n_points - 1``.
        samples
            Number of points to compute the distance for, drawn without
            replacement. ``None`` (or a value below one, or at least
            ``n_points``) uses every point in index order.
        seed
            Seed for :func:`numpy.random.default_rng` when sampling.

        Returns
        -------
        np.ndarray
            One distance per (sampled) point; fewer than two points give an
            empty array.
        """
        if isinstance(k, bool) or not isinstance(k, (int, np.integer)) or k < 1:
            raise InvalidConfigurationError(f"k must be a positive integer; got {k!r}.")
        n = self.n_points
        if n < 2:
            return np.empty(0)
        k = min(int(k), n - 1)

        query_points = self._points
        if samples is not None and 0 < samples < n:
            rng = np.random.default_rng(seed)
            query_points = self._points[rng.choice(n, size=int(samples), replace=False)]
        # The point itself is always at distance zero, so ask for one extra neighbour.
        distances, _ = self._tree.query(query_points, k=k + 1)
        return check_distances(np.asarray(distances, dtype=float)[:, k])

    # ---------------- Internals ----------------

    def _as_query_point(self, point) -> np.ndarray:
        query_point = np.asarray(point, dtype=np.float64).ravel()
        if query_point.shape != (self.n_dims,):
            raise InvalidInputError(
                f"Query point must have {self.n_dims} coordinates; got {query_point.shape[0]}."
            )
        if not np.isfinite(query_point).all():
            raise InvalidInputError("Query point has non-finite coordinates.")
        return query_point

    def _sorted_within(self, point: np.ndarray, radius: float) -> Tuple[np.ndarray, np.ndarray]:
        radius = float(radius)
        if math.isnan(radius) or radius < 0:
            raise InvalidConfigurationError(f"Radius must be non-negative; got {radius!r}.")
        if self._tree is None:
            return np.empty(0, dtype=np.intp), np.empty(0, dtype=float)

        if math.isinf(radius):
            candidates = np.arange(self.n_points, dtype=np.intp)
        else:
            candidates = np.asarray(self._tree.query_ball_point(point, r=radius), dtype=np.intp)

        distances = check_distances(np.linalg.norm(self._points[candidates] - point, axis=1))
        keep = distances <= radius
        candidates, distances = candidates[keep], distances[keep]

        order = np.lexsort((candidates, distances))
        return candidates[order], distances[order]


__all__ = ["SpatialIndex"]
