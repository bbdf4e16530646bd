"""Reference runs of scikit-learn's OPTICS for cross-checking results."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from sklearn.cluster import OPTICS

from .. import config
from ..core_utils.data_utils import as_point_array
from ..optics.parameters import OpticsConfig
from ..spatial.spatial_index import SpatialIndex


@dataclass(frozen=True)
class ReferenceRunResult:
    """Outputs of a scikit-learn OPTICS run, relabelled to this package's conventions.

    ``labels`` uses ``0`` for noise and ids from 1; distances are indexed by
    input point and undefined values are ``inf``.
    """

    labels: np.ndarray
    ordering: np.ndarray
    reachability: np.ndarray
    core_distances: np.ndarray

    @property
    def n_clusters(self) -> int:
        return int(len({x for x in self.labels.tolist() if x != config.NOISE}))


def run_sklearn_optics(points, optics_config: OpticsConfig) -> ReferenceRunResult:
    """Run :class:`sklearn.cluster.OPTICS` with equivalent parameters.

    ``min_pts`` maps to ``min_samples`` (both count the point itself) and
    ``max_eps`` is the generating distance this package would use. Flat
    extraction maps to ``cluster_method="dbscan"`` at the resolved cut, and
    hierarchical extraction to ``cluster_method="xi"``.
    """
    data = as_point_array(points)
    n_samples = data.shape[0]
    if n_samples <= 1:
        empty = np.full(n_samples, math.inf)
        return ReferenceRunResult(
            labels=np.zeros(n_samples, dtype=int),
            ordering=np.arange(n_samples),
            reachability=empty,
            core_distances=np.array(empty),
        )

    # scikit-learn requires min_samples >= 2.
    min_samples = max(min(optics_config.min_pts, n_samples), 2)
    params: dict[str, object] = {
        "min_samples": min_samples,
        "max_eps": optics_config.working_generating_distance(SpatialIndex.build(data)),
    }
    if optics_config.extraction_mode == "flat":
        params.update(cluster_method="dbscan", eps=optics_config.resolved_epsilon_cut)
    else:
        params.update(
            cluster_method="xi",
            xi=optics_config.xi,
            min_cluster_size=max(min(optics_config.resolved_min_cluster_size, n_samples), 2),
        )
    model = OPTICS(**params).fit(data)

    labels = np.asarray(model.labels_, dtype=int) + 1
    return ReferenceRunResult(
        labels=labels,
        ordering=np.asarray(model.ordering_),
        reachability=np.asarray(model.reachability_, dtype=float),
        core_distances=np.asarray(model.core_distances_, dtype=float),
    )


__all__ = ["ReferenceRunResult", "run_sklearn_optics"]
