"""OPTICS traversal producing the reachability ordering of a point set.

The method and variable names follow the pseudocode of Ankerst et al. (1999),
"OPTICS: Ordering Points To Identify the Clustering Structure".
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Tuple

import numpy as np

from .. import config
from ..errors import ComputationError, OrderingAbortedError
from ..spatial.spatial_index import SpatialIndex
from .ordered_profile import OrderedProfile
from .parameters import OpticsConfig
from .priority_queue import ReachabilityHeap

logger = logging.getLogger(__name__)

# Neighbours, their distances and the core distance of one point.
Neighbourhood = Tuple[np.ndarray, np.ndarray, float]


def core_distance(neighbour_distances: np.ndarray, min_pts: int) -> float:
    """Distance to the ``min_pts``-th neighbour (the point itself counts).

    ``neighbour_distances`` must be sorted ascending. Returns ``inf`` when
    there are fewer than ``min_pts`` neighbours.
    """
    if neighbour_distances.shape[0] < min_pts:
        return config.UNDEFINED
    return float(neighbour_distances[min_pts - 1])


def compute_ordering(
    index: SpatialIndex,
    optics_config: OpticsConfig,
    *,
    should_stop: Callable[[], bool] | None = None,
) -> OrderedProfile:
    """Run the OPTICS traversal over every point in ``index``.

    Parameters
    ----------
    index
        Spatial index over the points; only read.
    optics_config
        Supplies ``min_pts`` and the generating distance ``epsilon``. An
        estimated or clipped distance is resolved against ``index`` first
        and reported as :attr:`OrderedProfile.epsilon`.
    should_stop
        Optional callback checked before each point is processed. Returning
        ``True`` aborts the traversal.

    Returns
    -------
    OrderedProfile
        Ordering with exactly ``len(index)`` entries.

    Raises
    ------
    OrderingAbortedError
        If ``should_stop`` requested an abort.
    ComputationError
        If an internal invariant is violated.
    """
    min_pts = optics_config.min_pts
    epsilon = optics_config.working_generating_distance(index)
    started = time.perf_counter()
    logger.debug("Running OPTICS: n=%d, epsilon=%g, min_pts=%d", index.n_points, epsilon, min_pts)

    def neighbourhood(point: int) -> Neighbourhood:
        neighbours, distances = index.neighbours(point, epsilon)
        return neighbours, distances, core_distance(distances, min_pts)

    profile = expand_cluster_order(
        index.n_points, neighbourhood, min_pts=min_pts, epsilon=epsilon, should_stop=should_stop
    )
    logger.debug("Finished OPTICS ordering in %.3fs", time.perf_counter() - started)
    return profile


def expand_cluster_order(
    n_points: int,
    neighbourhood: Callable[[int], Neighbourhood],
    *,
    min_pts: int,
    epsilon: float,
    should_stop: Callable[[], bool] | None = None,
) -> OrderedProfile:
    """Order ``n_points`` points by repeatedly expanding the closest seed.

    Unprocessed points start new chains in index order. ``neighbourhood``
    returns the candidate neighbours of a point with their distances and the
    point's core distance; only core points offer reachability to their
    neighbours.
    """
    reachability = np.full(n_points, config.UNDEFINED)
    core = np.full(n_points, config.UNDEFINED)
    predecessor = np.full(n_points, config.NO_PREDECESSOR, dtype=np.intp)
    processed = np.zeros(n_points, dtype=bool)
    order: list[int] = []
    order_seeds = ReachabilityHeap()

    for seed in range(n_points):
        if processed[seed]:
            continue
        # Start of a new chain: the seed keeps an undefined reachability.
        current = seed
        while True:
            if should_stop is not None and should_stop():
                logger.debug("OPTICS aborted after %d of %d points", len(order), n_points)
                raise OrderingAbortedError(
                    f"OPTICS traversal aborted after {len(order)} of {n_points} points."
                )

            neighbours, distances, core[current] = neighbourhood(current)
            processed[current] = True
            order.append(current)

            if np.isfinite(core[current]):
                _update_order_seeds(
                    order_seeds,
                    current,
                    core[current],
                    neighbours,
                    distances,
                    processed,
                    reachability,
                    predecessor,
                )

            if not order_seeds:
                break
            current, _ = order_seeds.pop()

    if len(order) != n_points:
        raise ComputationError(f"OPTICS produced {len(order)} entries for {n_points} points.")

    order_array = np.asarray(order, dtype=np.intp)
    return OrderedProfile(
        order_array,
        reachability[order_array],
        core[order_array],
        predecessor[order_array],
        min_pts=min_pts,
        epsilon=epsilon,
    )


def _update_order_seeds(
    order_seeds: ReachabilityHeap,
    centre: int,
    centre_core_distance: float,
    neighbours: np.ndarray,
    distances: np.ndarray,
    processed: np.ndarray,
    reachability: np.ndarray,
    predecessor: np.ndarray,
) -> None:
    """Offer every unprocessed neighbour the reachability through ``centre``."""
    candidate_reachability = np.maximum(distances, centre_core_distance)
    for neighbour, new_r_dist in zip(neighbours.tolist(), candidate_reachability.tolist()):
        if processed[neighbour]:
            continue
        if new_r_dist < reachability[neighbour]:
            reachability[neighbour] = new_r_dist
            predecessor[neighbour] = centre
            order_seeds.push_or_decrease(neighbour, new_r_dist)


__all__ = ["compute_ordering", "core_distance", "expand_cluster_order"]
