"""
End-to-end OPTICS runs: build the spatial index, compute the ordering and
extract clusters.

Each call is sequential and keeps no module state; the returned
:class:`OpticsResult` is immutable, so several runs (or several extractions of
one ordering) can proceed concurrently.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

import numpy as np

from .density.dbscan import DbscanResult, run_dbscan
from .errors import InvalidConfigurationError
from .hierarchy_analysis.cluster_assignments import build_point_cluster_assignments
from .hierarchy_analysis.cluster_tree import ClusterTree
from .hierarchy_analysis.extraction import extract_clusters
from .optics.ordered_profile import OrderedProfile
from .optics.fast_optics import compute_fast_ordering
from .optics.parameters import FastOpticsConfig, OpticsConfig
from .optics.reachability_ordering import compute_ordering
from .spatial.spatial_index import SpatialIndex

# Configure logger (library-friendly: leave handlers/levels to callers)
logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


@dataclass(frozen=True)
class OpticsResult:
    """Ordering and extracted clusters of one OPTICS run."""

    profile: OrderedProfile
    tree: ClusterTree
    config: OpticsConfig

    @property
    def n_clusters(self) -> int:
        return self.tree.n_clusters

    def labels(self, core: bool = False) -> np.ndarray:
        """Deepest cluster id of every input point (``0`` = noise).

        With ``core=True`` only core points keep their cluster id.
        """
        core_mask = self.profile.core_mask() if core else None
        return self.tree.labels(core_mask)

    def assignments(self):
        """Per-point assignment table (see :func:`build_point_cluster_assignments`)."""
        return build_point_cluster_assignments(self.profile, self.tree)

    def reextract(self, optics_config: OpticsConfig) -> "OpticsResult":
        """Extract clusters again from the same ordering with new extraction settings.

        Raises
        ------
        InvalidConfigurationError
            If ``optics_config`` asks for a different ``min_pts`` or ``epsilon``
            than the ordering was computed with.
        """
        if (
            optics_config.min_pts != self.config.min_pts
            or optics_config.generating_distance != self.config.generating_distance
        ):
            raise InvalidConfigurationError(
                "Re-extraction must keep min_pts and epsilon of the ordering "
                f"(min_pts={self.config.min_pts}, epsilon={self.config.epsilon!r})."
            )
        tree = extract_clusters(self.profile, optics_config)
        return OpticsResult(self.profile, tree, optics_config)


def run_optics(
    points,
    optics_config: OpticsConfig | None = None,
    *,
    should_stop: Callable[[], bool] | None = None,
) -> OpticsResult:
    """Cluster ``points`` with OPTICS.

    Parameters
    ----------
    points
        ``(N, D)`` array-like of finite coordinates, or an existing
        :class:`SpatialIndex`.
    optics_config
        Run parameters; defaults to ``OpticsConfig()``.
    should_stop
        Optional cancellation callback checked before each point is ordered.

    Returns
    -------
    OpticsResult
        The ordering, the cluster tree and the configuration used.

    Raises
    ------
    InvalidInputError
        If ``points`` is not a finite numeric ``(N, D)`` array.
    OrderingAbortedError
        If ``should_stop`` requested cancellation.
    """
    optics_config = optics_config or OpticsConfig()
    index = points if isinstance(points, SpatialIndex) else SpatialIndex.build(points)
    started = time.perf_counter()

    profile = compute_ordering(index, optics_config, should_stop=should_stop)
    tree = extract_clusters(profile, optics_config)

    logger.info(
        "OPTICS clustered %d points into %d clusters (%s extraction, epsilon=%g) in %.3fs",
        len(profile),
        tree.n_clusters,
        optics_config.extraction_mode,
        profile.epsilon,
        time.perf_counter() - started,
    )
    return OpticsResult(profile, tree, optics_config)


def run_fast_optics(
    points,
    optics_config: OpticsConfig | None = None,
    fast_config: FastOpticsConfig | None = None,
    *,
    should_stop: Callable[[], bool] | None = None,
) -> OpticsResult:
    """Cluster ``points`` from the approximate FastOPTICS ordering.

    The ordering comes from :func:`compute_fast_ordering`; clusters are
    extracted from it exactly as for :func:`run_optics`. Flat extraction
    needs an explicit ``epsilon_cut`` because the ordering is unbounded.
    """
    optics_config = optics_config or OpticsConfig()
    index = points if isinstance(points, SpatialIndex) else SpatialIndex.build(points)
    started = time.perf_counter()

    profile = compute_fast_ordering(index, optics_config, fast_config, should_stop=should_stop)
    tree = extract_clusters(profile, optics_config)

    logger.info(
        "FastOPTICS clustered %d points into %d clusters (%s extraction) in %.3fs",
        len(profile),
        tree.n_clusters,
        optics_config.extraction_mode,
        time.perf_counter() - started,
    )
    return OpticsResult(profile, tree, optics_config)


def run_dbscan_on_points(points, min_pts: int, epsilon: float) -> DbscanResult:
    """Build a spatial index over ``points`` and run DBSCAN on it."""
    index = points if isinstance(points, SpatialIndex) else SpatialIndex.build(points)
    result = run_dbscan(index, min_pts, epsilon)
    logger.info(
        "DBSCAN clustered %d points into %d clusters", index.n_points, result.n_clusters
    )
    return result


__all__ = ["OpticsResult", "run_optics", "run_fast_optics", "run_dbscan_on_points"]
