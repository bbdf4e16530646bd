"""Flat (DBSCAN-equivalent) clustering read off an OPTICS ordering."""

from __future__ import annotations

import logging
from typing import Dict, List, Tuple

import numpy as np

from .. import config
from ..errors import InvalidConfigurationError
from ..optics.ordered_profile import OrderedProfile
from .cluster_tree import ClusterTree

logger = logging.getLogger(__name__)


def extract_dbscan_clustering(
    profile: OrderedProfile,
    epsilon_cut: float,
    *,
    core_only: bool = False,
) -> ClusterTree:
    """Cut the reachability plot at ``epsilon_cut``.

    Walking the ordering once, a point whose reachability exceeds the cut
    starts a new cluster when it is a core point at that distance and is
    noise otherwise (closing the active cluster). Points below the cut extend
    the active cluster. With ``core_only`` only core points are assigned, so
    the result matches the core points of DBSCAN run at ``epsilon_cut``.

    Parameters
    ----------
    profile
        Ordering produced with a generating distance of at least ``epsilon_cut``.
    epsilon_cut
        Flat cut distance.
    core_only
        Assign only points whose core distance is within ``epsilon_cut``.

    Returns
    -------
    ClusterTree
        Single-level tree; ids start at 1 in order of discovery.
    """
    epsilon_cut = float(epsilon_cut)
    if not np.isfinite(epsilon_cut) or epsilon_cut <= 0:
        raise InvalidConfigurationError(
            f"epsilon_cut must be a finite positive distance; got {epsilon_cut!r}."
        )
    if epsilon_cut > profile.epsilon:
        raise InvalidConfigurationError(
            f"epsilon_cut ({epsilon_cut:g}) must not exceed the generating "
            f"distance of the ordering ({profile.epsilon:g})."
        )

    reachability = profile.reachability_profile()
    core = profile.core_distance_profile()
    assignments = np.full(len(profile), config.NOISE, dtype=np.intp)
    ranges: Dict[int, Tuple[int, int, List[int]]] = {}

    active = config.NOISE
    next_id = config.NOISE
    start = end = 0
    for position in range(len(profile)):
        if reachability[position] > epsilon_cut:
            if active != config.NOISE:
                ranges[active] = (start, end, [])
            if core[position] <= epsilon_cut:
                next_id += 1
                active = next_id
                start = end = position
                assignments[position] = active
            else:
                active = config.NOISE
        elif active != config.NOISE:
            if not core_only or core[position] <= epsilon_cut:
                end = position
                assignments[position] = active

    if active != config.NOISE:
        ranges[active] = (start, end, [])

    logger.debug(
        "Flat extraction at %g (core_only=%s): %d clusters", epsilon_cut, core_only, len(ranges)
    )
    return ClusterTree.from_ranges(ranges, ranges.keys(), assignments, profile.order)


__all__ = ["extract_dbscan_clustering"]
