"""Per-point cluster assignment tables.

Stateless helpers turning a :class:`ClusterTree` into tabular output so that
results can be joined with the input data or compared across runs.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from .. import config
from ..optics.ordered_profile import OrderedProfile
from .cluster_tree import ClusterTree

_COLUMNS = ["cluster_id", "top_level_cluster_id", "level", "cluster_size", "order_position"]


def build_point_cluster_assignments(profile: OrderedProfile, tree: ClusterTree) -> pd.DataFrame:
    """Build per-point cluster assignments from an extracted tree.

    Parameters
    ----------
    profile
        The ordering the tree was extracted from.
    tree
        Extracted clusters.

    Returns
    -------
    pandas.DataFrame
        A DataFrame indexed by ``point_id`` (original input index) with columns:

        - ``cluster_id``: deepest cluster containing the point (``0`` = noise)
        - ``top_level_cluster_id``: level-0 cluster containing the point
        - ``level``: nesting level of ``cluster_id`` (``-1`` for noise)
        - ``cluster_size``: size of ``cluster_id`` (``0`` for noise)
        - ``order_position``: position of the point in the ordering
    """
    n = len(profile)
    if n == 0:
        frame = pd.DataFrame(columns=_COLUMNS, dtype=np.int64)
        frame.index.name = "point_id"
        return frame

    labels = tree.labels()
    levels = np.full(n, -1, dtype=np.int64)
    sizes = np.zeros(n, dtype=np.int64)
    for cluster in tree.iter_clusters():
        members = labels == cluster.cluster_id
        levels[members] = cluster.level
        sizes[members] = cluster.size

    assignments_table = pd.DataFrame(
        {
            "cluster_id": labels.astype(np.int64),
            "top_level_cluster_id": tree.top_level_labels().astype(np.int64),
            "level": levels,
            "cluster_size": sizes,
            "order_position": np.asarray(profile.positions, dtype=np.int64),
        },
        index=pd.RangeIndex(n, name="point_id"),
    )
    return assignments_table


def noise_points(tree: ClusterTree) -> np.ndarray:
    """Original indices of the points not assigned to any cluster."""
    return np.flatnonzero(tree.labels() == config.NOISE)


__all__ = ["build_point_cluster_assignments", "noise_points"]
