"""Hierarchical cluster extraction from a reachability plot using the xi method.

A cluster starts in a *steep-down area* (reachability drops by at least a
factor ``1 - xi``) and ends in a matching *steep-up area*. The implementation
follows Ankerst et al. (1999), section 4.3, with the corrections used by the R
``dbscan`` package and ELKI:

- a steep-up area never ends on an unreachable (``inf``) point;
- the cluster end is moved back until its predecessor lies inside the cluster;
- optionally the last steep-up point is dropped when it is itself xi-steep.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Set, Tuple

import numpy as np

from .. import config
from ..errors import InvalidConfigurationError
from ..optics.ordered_profile import OrderedProfile
from .cluster_tree import ClusterTree

logger = logging.getLogger(__name__)


@dataclass
class _SteepArea:
    start: int
    end: int
    maximum: float
    # Maximum reachability seen between the end of this area and the scan position.
    mib: float = 0.0


@dataclass
class _Candidate:
    start: int
    end: int
    children: List[int]


def _steep_down(reachability: np.ndarray, index: int, ixi: float) -> bool:
    if index + 1 >= reachability.shape[0]:
        return False
    following = reachability[index + 1]
    if math.isinf(following):
        return False
    return reachability[index] * ixi >= following


def _steep_up(reachability: np.ndarray, index: int, ixi: float) -> bool:
    current = reachability[index]
    if math.isinf(current):
        return False
    if index + 1 >= reachability.shape[0]:
        return True
    return current <= reachability[index + 1] * ixi


def _next_reachability(reachability: np.ndarray, index: int) -> float:
    if index + 1 < reachability.shape[0]:
        return float(reachability[index + 1])
    return math.inf


def _update_filter_sda_set(steep_down_areas: List[_SteepArea], mib: float, ixi: float) -> None:
    """Drop areas whose start is too low for the global mib and raise the others' mib."""
    threshold = mib / ixi
    steep_down_areas[:] = [sda for sda in steep_down_areas if sda.maximum >= threshold]
    for sda in steep_down_areas:
        sda.mib = max(sda.mib, mib)


def extract_xi_clusters(
    profile: OrderedProfile,
    xi: float,
    *,
    min_cluster_size: int,
    top_level_only: bool = False,
    correct_ends: bool = True,
    exclude_last_steep_up: bool = False,
    upper_limit: float | None = None,
    lower_limit: float | None = None,
) -> ClusterTree:
    """Extract a hierarchy of clusters from the steep areas of the profile.

    Parameters
    ----------
    profile
        OPTICS ordering.
    xi
        Steepness ratio in ``(0, 1)``. Higher values keep only the most
        pronounced clusters.
    min_cluster_size
        Minimum number of profile entries in a cluster.
    top_level_only
        Replace contained clusters by the containing cluster instead of nesting
        them. The containing cluster takes the lowest id it replaces.
    correct_ends
        Move the cluster end back until the predecessor of its last point
        lies inside the cluster.
    exclude_last_steep_up
        Drop the last point of the steep-up area when it is xi-steep.
    upper_limit, lower_limit
        Bounds on the reachability of the first reachable point after a steep
        down area and of the steep-up point ending a cluster.

    Returns
    -------
    ClusterTree
        Clusters nest strictly; each point is assigned to the deepest cluster
        containing it. A candidate that starts inside an earlier cluster
        and ends after it is trimmed to begin after that cluster; candidates
        that duplicate or otherwise overlap an extracted cluster are discarded.
    """
    xi = float(xi)
    if not 0.0 < xi < 1.0:
        raise InvalidConfigurationError(f"xi must lie in (0, 1); got {xi!r}.")
    if min_cluster_size < 1:
        raise InvalidConfigurationError(
            f"min_cluster_size must be >= 1; got {min_cluster_size!r}."
        )

    ixi = 1.0 - xi
    use_upper = upper_limit is not None and not math.isinf(upper_limit)
    use_lower = lower_limit is not None and lower_limit > 0
    min_pts = profile.min_pts

    n = len(profile)
    reachability = profile.reachability_profile()
    positions = profile.positions
    predecessors = profile.predecessors
    assignments = np.full(n, config.NOISE, dtype=np.intp)

    def predecessor_in_cluster(cstart: int, cend: int) -> bool:
        predecessor = predecessors[cend]
        if predecessor == config.NO_PREDECESSOR:
            return False
        return cstart <= positions[predecessor] < cend

    def outside_limits(value: float) -> bool:
        return (use_upper and value > upper_limit) or (use_lower and value < lower_limit)

    steep_down_areas: List[_SteepArea] = []
    candidates: Dict[int, _Candidate] = {}
    # Ids of the clusters not (yet) nested in another cluster.
    outermost: List[int] = []
    used_ids: Set[int] = set()

    index = 0
    mib = 0.0
    while index < n:
        mib = max(mib, reachability[index])
        if index + 1 >= n:
            break

        if _steep_down(reachability, index, ixi):
            if outside_limits(reachability[index + 1]):
                index += 1
                continue
            _update_filter_sda_set(steep_down_areas, mib, ixi)
            start_value = float(reachability[index])
            mib = 0.0
            start_steep = index
            end_steep = index + 1
            index += 1
            while index < n:
                if _steep_down(reachability, index, ixi):
                    end_steep = index + 1
                elif not _steep_down(reachability, index, 1.0) or index - end_steep > min_pts:
                    break
                index += 1
            steep_down_areas.append(_SteepArea(start_steep, end_steep, start_value))
            continue

        if not _steep_up(reachability, index, ixi):
            index += 1
            continue

        if outside_limits(reachability[index]):
            index += 1
            continue
        _update_filter_sda_set(steep_down_areas, mib, ixi)
        start_steep = index
        end_steep = index + 1
        mib = float(reachability[index])
        end_successor = _next_reachability(reachability, index)
        if math.isinf(end_successor):
            end_steep -= 1
            index += 1
        else:
            index += 1
            while index < n:
                if _steep_up(reachability, index, ixi):
                    if use_upper and reachability[index] > upper_limit:
                        break
                    end_steep = index + 1
                    mib = float(reachability[index])
                    end_successor = _next_reachability(reachability, index)
                    if math.isinf(end_successor):
                        end_steep -= 1
                        break
                elif not _steep_up(reachability, index, 1.0) or index - end_steep > min_pts:
                    break
                index += 1
        steep_up = _SteepArea(start_steep, end_steep, end_successor)

        # mib now holds the reachability at the end of the steep-up area.
        threshold = mib * ixi
        for sda in reversed(list(steep_down_areas)):
            if sda.mib > threshold:
                continue

            cstart = sda.start
            cend = steep_up.end
            if sda.maximum * ixi >= steep_up.maximum:
                while cstart < cend and reachability[cstart + 1] > steep_up.maximum:
                    cstart += 1
            elif steep_up.maximum * ixi >= sda.maximum:
                while cend > cstart and reachability[cend - 1] > sda.maximum:
                    cend -= 1

            if correct_ends:
                while cend > cstart and not predecessor_in_cluster(cstart, cend):
                    cend -= 1

            if exclude_last_steep_up and _steep_up(reachability, index - 1, ixi):
                cend -= 1

            if cend - cstart + 1 < min_cluster_size:
                continue

            resolved = _resolve_overlaps(candidates, outermost, cstart, cend)
            if resolved is None:
                logger.debug("Discarding xi candidate [%d:%d] overlapping a cluster", cstart, cend)
                continue
            cstart, contained = resolved
            if cend - cstart + 1 < min_cluster_size:
                continue

            cluster_id = max(used_ids, default=config.NOISE) + 1
            if top_level_only:
                if contained:
                    cluster_id = min([cluster_id] + contained)
                for child in contained:
                    del candidates[child]
                    outermost.remove(child)
                    used_ids.discard(child)
                assignments[cstart : cend + 1] = cluster_id
                candidates[cluster_id] = _Candidate(cstart, cend, [])
            else:
                segment = assignments[cstart : cend + 1]
                segment[segment == config.NOISE] = cluster_id
                for child in contained:
                    outermost.remove(child)
                candidates[cluster_id] = _Candidate(cstart, cend, contained)
            used_ids.add(cluster_id)
            outermost.append(cluster_id)

    ranges = {cid: (c.start, c.end, c.children) for cid, c in candidates.items()}
    logger.debug(
        "Xi extraction (xi=%g, min_cluster_size=%d, top_level_only=%s): %d clusters",
        xi,
        min_cluster_size,
        top_level_only,
        len(ranges),
    )
    return ClusterTree.from_ranges(ranges, outermost, assignments, profile.order)


def _resolve_overlaps(
    candidates: Dict[int, _Candidate], outermost: List[int], start: int, end: int
) -> Tuple[int, List[int]] | None:
    """Fit ``[start, end]`` around the outermost clusters extracted so far.

    A candidate starting inside an earlier cluster and ending after it begins
    after that cluster instead. Returns the adjusted start with the ids of
    the clusters it contains, or None when the range equals an existing
    cluster or overlaps one in any other way.
    """
    contained: List[int] = []
    for cid in sorted(outermost, key=lambda c: candidates[c].start):
        cluster = candidates[cid]
        if cluster.end < start or end < cluster.start:
            continue
        if cluster.start < start <= cluster.end < end:
            start = cluster.end + 1
            continue
        if (cluster.start, cluster.end) == (start, end):
            return None
        if start <= cluster.start and cluster.end <= end:
            contained.append(cid)
        else:
            return None
    return start, contained


__all__ = ["extract_xi_clusters"]
