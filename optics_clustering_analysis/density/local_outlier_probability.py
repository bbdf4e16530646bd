"""Local Outlier Probabilities (LoOP).

Kriegel, Kröger, Schubert and Zimek (2009), "LoOP: Local Outlier
Probabilities". Each score is the probability, in ``[0, 1]``, that a point is
an outlier relative to the density of its ``k`` nearest neighbours.
"""

from __future__ import annotations

import logging
import math

import numpy as np
from scipy.special import erf

from .. import config
from ..errors import InvalidConfigurationError
from ..spatial.spatial_index import SpatialIndex

logger = logging.getLogger(__name__)


def _k_nearest_others(index: SpatialIndex, point_index: int, k: int) -> np.ndarray:
    neighbours = index.k_nearest(index.points[point_index], k + 1)
    others = [i for i, _ in neighbours if i != point_index]
    return np.asarray(others[:k], dtype=np.intp)


def compute_local_outlier_probability(
    index: SpatialIndex,
    n_neighbours: int = config.DEFAULT_LOOP_NEIGHBOURS,
    lambda_: float = config.DEFAULT_LOOP_LAMBDA,
) -> np.ndarray:
    """Compute the LoOP score of every indexed point.

    Parameters
    ----------
    index
        Spatial index over the points.
    n_neighbours
        Neighbourhood size ``k`` (the point itself excluded), clipped to
        ``[1, N - 1]``.
    lambda_
        Normalisation factor (number of standard deviations).

    Returns
    -------
    np.ndarray
        Scores in input order. Fewer than two points give all zeros.
    """
    if not lambda_ > 0:
        raise InvalidConfigurationError(f"lambda_ must be positive; got {lambda_!r}.")
    n = index.n_points
    if n < 2:
        return np.zeros(n)
    k = int(min(max(int(n_neighbours), 1), n - 1))

    neighbours = np.empty((n, k), dtype=np.intp)
    probabilistic_distance = np.empty(n)
    points = index.points
    for i in range(n):
        neighbours[i] = _k_nearest_others(index, i, k)
        squared = np.sum((points[neighbours[i]] - points[i]) ** 2, axis=1)
        probabilistic_distance[i] = math.sqrt(float(squared.sum()) / k)

    expected = probabilistic_distance[neighbours].sum(axis=1)
    with np.errstate(divide="ignore", invalid="ignore"):
        plof = np.maximum(probabilistic_distance * k / expected, 1.0)
    plof[~np.isfinite(plof)] = 1.0

    nplof = lambda_ * math.sqrt(float(np.sum((plof - 1.0) ** 2)) / n)
    if nplof <= 0:
        nplof = 1.0

    scores = erf((plof - 1.0) / (nplof * math.sqrt(2.0)))
    logger.debug("LoOP over %d points (k=%d, lambda=%g): nplof=%g", n, k, lambda_, nplof)
    return np.clip(scores, 0.0, 1.0)


__all__ = ["compute_local_outlier_probability"]
