"""Heuristic choice of the OPTICS generating distance.

Section 4.1 of the OPTICS paper (Ankerst et al., 1999) suggests using the
radius of a hypersphere that is expected to hold ``min_pts`` points when the
data are spread uniformly over the data space.
"""

from __future__ import annotations

import logging
import math

import numpy as np
from scipy.special import gamma

from ..errors import InvalidConfigurationError

logger = logging.getLogger(__name__)


def unit_ball_volume(n_dims: int) -> float:
    """Volume of the unit hypersphere in ``n_dims`` dimensions."""
    return float(math.pi ** (n_dims / 2.0) / gamma(n_dims / 2.0 + 1.0))


def compute_generating_distance(
    min_pts: int, volume: float, n_points: int, n_dims: int = 2
) -> float:
    """
    Compute the generating distance assuming a uniform distribution in the data space.

    Parameters
    ----------
    min_pts : int
        Expected number of neighbours inside the hypersphere.
    volume : float
        Volume (area in 2D) of the data space.
    n_points : int
        Number of points in the data space.
    n_dims : int
        Dimensionality of the data space.

    Returns
    -------
    float
        Radius of the hypersphere expected to contain ``min_pts`` points.
    """
    if min_pts < 1:
        raise InvalidConfigurationError(f"min_pts must be >= 1; got {min_pts}.")
    if n_points < 1 or volume <= 0 or n_dims < 1:
        raise InvalidConfigurationError(
            "Generating distance requires a positive volume, point count and dimensionality."
        )
    volume_sphere = (volume / n_points) * min_pts
    return float((volume_sphere / unit_ball_volume(n_dims)) ** (1.0 / n_dims))


def estimate_generating_distance(index, min_pts: int) -> float:
    """
    Estimate the generating distance for the points held in a spatial index.

    The data space is the bounding box of the points; degenerate dimensions
    are given an extent of one. The estimate never exceeds the box diagonal,
    and colocated data (or a single point) return ``1.0``.

    Parameters
    ----------
    index : SpatialIndex
        Index over the points.
    min_pts : int
        Number of points expected within the distance.

    Returns
    -------
    float
        The generating distance.
    """
    if index.n_points == 0:
        return 1.0
    lower, upper = index.bounds()
    extent = np.asarray(upper - lower, dtype=float)
    if not np.any(extent > 0):
        return 1.0

    volume = float(np.prod(np.where(extent > 0, extent, 1.0)))
    distance = compute_generating_distance(min_pts, volume, index.n_points, index.n_dims)
    diagonal = float(np.sqrt(np.sum(extent**2)))
    if distance > diagonal:
        logger.debug(
            "Generating distance %.6g clipped to the data diagonal %.6g", distance, diagonal
        )
        return diagonal
    return distance


def working_generating_distance(index, min_pts: int, epsilon: float | None) -> float:
    """
    Generating distance actually used to order the points of ``index``.

    Parameters
    ----------
    index : SpatialIndex
        Index over the points.
    min_pts : int
        Number of points expected within the distance.
    epsilon : float or None
        Requested distance. ``None`` estimates it from the data
        (:func:`estimate_generating_distance`); ``inf`` keeps the search
        unbounded. A finite distance larger than the diagonal of the data
        bounding box is reduced to the diagonal, which cannot change any
        neighbourhood.

    Returns
    -------
    float
        The distance to search within.
    """
    if epsilon is None:
        distance = estimate_generating_distance(index, min_pts)
        logger.debug("Estimated generating distance %.6g for min_pts=%d", distance, min_pts)
        return distance

    epsilon = float(epsilon)
    if math.isinf(epsilon) or index.n_points == 0:
        return epsilon
    lower, upper = index.bounds()
    diagonal = float(np.sqrt(np.sum((upper - lower) ** 2)))
    if 0 < diagonal < epsilon:
        logger.debug("Generating distance %.6g clipped to the data diagonal %.6g", epsilon, diagonal)
        return diagonal
    return epsilon


__all__ = [
    "unit_ball_volume",
    "compute_generating_distance",
    "estimate_generating_distance",
    "working_generating_distance",
]
