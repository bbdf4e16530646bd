"""Classic DBSCAN over a spatial index.

Neighbourhoods include the point itself, so a point is a core point when at
least ``min_pts`` points (itself included) lie within ``epsilon``. This is the
same convention as the OPTICS traversal, which makes the core points of
:func:`run_dbscan` identical to those of a core-only flat extraction at the
same distance.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable, List

import numpy as np

from .. import config
from ..errors import InvalidConfigurationError
from ..spatial.spatial_index import SpatialIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DbscanResult:
    """Outcome of a DBSCAN run.

    Attributes
    ----------
    min_pts, epsilon
        Parameters of the run.
    cluster_ids
        Cluster id of each original point (``0`` = noise), ids from 1 in
        order of discovery.
    neighbour_counts
        Size of each point's ``epsilon`` neighbourhood, the point included.
    """

    min_pts: int
    epsilon: float
    cluster_ids: np.ndarray = field(repr=False)
    neighbour_counts: np.ndarray = field(repr=False)

    @property
    def core_mask(self) -> np.ndarray:
        return self.neighbour_counts >= self.min_pts

    @property
    def n_clusters(self) -> int:
        return int(self.cluster_ids.max()) if self.cluster_ids.size else 0

    def labels(self, core: bool = False) -> np.ndarray:
        """Cluster id of every point; with ``core=True`` border points are noise."""
        labels = np.array(self.cluster_ids)
        if core:
            labels[~self.core_mask] = config.NOISE
        return labels

    def members(self, cluster_ids: Iterable[int]) -> np.ndarray:
        """Indices of the points in the given clusters, grouped by cluster id."""
        result: List[np.ndarray] = [
            np.flatnonzero(self.cluster_ids == cid) for cid in cluster_ids if cid != config.NOISE
        ]
        if not result:
            return np.empty(0, dtype=np.intp)
        return np.concatenate(result)


def run_dbscan(index: SpatialIndex, min_pts: int, epsilon: float) -> DbscanResult:
    """Cluster the indexed points with DBSCAN (Ester et al., 1996).

    Points are visited in index order; border points reachable from several
    clusters join the first cluster that reaches them.

    Raises
    ------
    InvalidConfigurationError
        If ``min_pts < 1`` or ``epsilon`` is not a finite positive distance.
    """
    if isinstance(min_pts, bool) or not isinstance(min_pts, (int, np.integer)) or min_pts < 1:
        raise InvalidConfigurationError(f"min_pts must be an integer >= 1; got {min_pts!r}.")
    epsilon = float(epsilon)
    if not np.isfinite(epsilon) or epsilon <= 0:
        raise InvalidConfigurationError(
            f"epsilon must be a finite positive distance; got {epsilon!r}."
        )

    n = index.n_points
    started = time.perf_counter()
    neighbourhoods = [index.neighbours(i, epsilon)[0] for i in range(n)]
    counts = np.fromiter((len(nb) for nb in neighbourhoods), dtype=np.intp, count=n)
    is_core = counts >= min_pts

    cluster_ids = np.full(n, config.NOISE, dtype=np.intp)
    visited = np.zeros(n, dtype=bool)
    cluster_id = config.NOISE
    for seed in range(n):
        if visited[seed] or not is_core[seed]:
            continue
        cluster_id += 1
        visited[seed] = True
        cluster_ids[seed] = cluster_id
        queue = deque([seed])
        while queue:
            point = queue.popleft()
            for neighbour in neighbourhoods[point].tolist():
                if cluster_ids[neighbour] == config.NOISE:
                    cluster_ids[neighbour] = cluster_id
                if not visited[neighbour] and is_core[neighbour]:
                    visited[neighbour] = True
                    queue.append(neighbour)

    logger.debug(
        "DBSCAN (epsilon=%g, min_pts=%d): %d clusters in %.3fs",
        epsilon,
        min_pts,
        cluster_id,
        time.perf_counter() - started,
    )
    cluster_ids.setflags(write=False)
    counts.setflags(write=False)
    return DbscanResult(int(min_pts), epsilon, cluster_ids, counts)


__all__ = ["DbscanResult", "run_dbscan"]
