"""FastOPTICS: an approximate OPTICS ordering built from random projections.

Schneider & Vlachos (2013), "Fast parameterless density-based clustering via
random projections". The points are projected onto random lines and split
recursively at random positions until every set holds at most ``min_pts``
points. Points that share a set are sampled as neighbours, and the core
distance of a point is its mean distance to the neighbours sampled for it
(repeats included, so frequently co-located neighbours weigh more). The
ordering then expands these neighbourhoods exactly as OPTICS does, without a
distance bound, so the profile reports an unbounded generating distance.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Tuple

import numpy as np

from .. import config
from ..spatial.spatial_index import SpatialIndex
from .ordered_profile import OrderedProfile
from .parameters import FastOpticsConfig, OpticsConfig, SampleMode
from .reachability_ordering import Neighbourhood, expand_cluster_order

logger = logging.getLogger(__name__)

# Smallest set that can provide a neighbour.
_MIN_SET_SIZE = 2


def projection_directions(
    n_projections: int,
    n_dims: int,
    rng: np.random.Generator,
    use_random_vectors: bool = False,
) -> np.ndarray:
    """Unit vectors to project onto, one row per projection.

    Two-dimensional data use directions evenly spaced over a half circle
    unless ``use_random_vectors`` is set; otherwise directions are drawn
    uniformly from the unit sphere.
    """
    if use_random_vectors or n_dims != 2:
        vectors = rng.normal(size=(n_projections, n_dims))
        norms = np.linalg.norm(vectors, axis=1, keepdims=True)
        return vectors / np.where(norms > 0, norms, 1.0)
    angles = np.arange(n_projections) * (np.pi / n_projections)
    return np.column_stack([np.sin(angles), np.cos(angles)])


def compute_split_sets(
    projected: np.ndarray,
    min_split_size: int,
    n_splits: int,
    rng: np.random.Generator,
    *,
    save_approximate_sets: bool = False,
    sample_mode: SampleMode = "random",
) -> List[np.ndarray]:
    """Recursively split the points into small sets, ``n_splits`` times over.

    Parameters
    ----------
    projected
        ``(n_projections, n_points)`` projected coordinates.
    min_split_size
        Sets larger than this are split again.
    n_splits
        Number of independent rounds of splitting the whole point set.
    rng
        Random generator for the projection order, split positions and the
        order of the points within a saved set.
    save_approximate_sets
        Also keep sets whose size is within two thirds of ``min_split_size``.
    sample_mode
        ``"random"`` shuffles each saved set, ``"median"`` sorts it along the
        projection used at its depth and ``"all"`` keeps it as is.

    Returns
    -------
    list of np.ndarray
        Point indices of every saved set (each with at least two points).
    """
    n_projections, n_points = projected.shape
    if min_split_size < _MIN_SET_SIZE or n_points < _MIN_SET_SIZE:
        return []
    if n_points == _MIN_SET_SIZE:
        return [np.arange(n_points)]

    tolerance = config.FAST_OPTICS_SIZE_TOLERANCE
    lower = min_split_size * (1 - tolerance)
    upper = min_split_size * (1 + tolerance)

    split_sets: List[np.ndarray] = []
    for _ in range(n_splits):
        projection_order = rng.permutation(n_projections)
        stack: List[Tuple[np.ndarray, int]] = [(np.arange(n_points), 0)]
        while stack:
            indices, depth = stack.pop()
            size = indices.shape[0]
            if size < _MIN_SET_SIZE:
                continue
            values = projected[projection_order[depth % n_projections], indices]
            if (save_approximate_sets and lower < size < upper) or size <= min_split_size:
                split_sets.append(_arrange_set(indices, values, rng, sample_mode))
                continue
            left, right = _split_randomly(indices, values, rng)
            stack.append((right, depth + 1))
            stack.append((left, depth + 1))
    return split_sets


def _split_randomly(
    indices: np.ndarray, values: np.ndarray, rng: np.random.Generator
) -> Tuple[np.ndarray, np.ndarray]:
    split_value = values[rng.integers(indices.shape[0])]
    below = values <= split_value
    if below.all():
        if (values == values[0]).all():
            half = (indices.shape[0] + 1) // 2
            return indices[:half], indices[half:]
        # The largest value was drawn; the next projection splits the set.
        return indices, indices[:0]
    return indices[below], indices[~below]


def _arrange_set(
    indices: np.ndarray, values: np.ndarray, rng: np.random.Generator, sample_mode: SampleMode
) -> np.ndarray:
    if sample_mode == "random":
        return rng.permutation(indices)
    if sample_mode == "median":
        return indices[np.argsort(values, kind="stable")]
    return indices.copy()


def _sampled_pairs(members: np.ndarray, sample_mode: SampleMode) -> Tuple[np.ndarray, np.ndarray]:
    if sample_mode == "all":
        first, second = np.triu_indices(members.shape[0], k=1)
        return members[first], members[second]
    if sample_mode == "median":
        middle = members.shape[0] // 2
        others = np.delete(members, middle)
        return np.full_like(others, members[middle]), others
    if members.shape[0] == _MIN_SET_SIZE:
        return members[:1], members[1:]
    # Consecutive points in the shuffled set, closing the cycle.
    return members, np.roll(members, -1)


def sample_neighbours(
    points: np.ndarray, split_sets: List[np.ndarray], sample_mode: SampleMode = "random"
) -> Tuple[np.ndarray, List[np.ndarray]]:
    """Sample neighbour pairs inside each split set.

    Returns
    -------
    tuple[np.ndarray, list of np.ndarray]
        The core distance of every point (mean distance over all sampled
        pairs, ``inf`` for points never sampled) and the sorted distinct
        neighbours of every point.
    """
    n_points = points.shape[0]
    core = np.full(n_points, config.UNDEFINED)
    if not split_sets:
        return core, [np.empty(0, dtype=np.intp) for _ in range(n_points)]

    pairs = [_sampled_pairs(members, sample_mode) for members in split_sets]
    first = np.concatenate([a for a, _ in pairs]).astype(np.intp)
    second = np.concatenate([b for _, b in pairs]).astype(np.intp)
    distances = np.linalg.norm(points[first] - points[second], axis=1)

    sums = np.bincount(first, weights=distances, minlength=n_points) + np.bincount(
        second, weights=distances, minlength=n_points
    )
    counts = np.bincount(first, minlength=n_points) + np.bincount(second, minlength=n_points)
    sampled = counts > 0
    core[sampled] = sums[sampled] / counts[sampled]

    keys = np.unique(np.concatenate([first * n_points + second, second * n_points + first]))
    sources, targets = np.divmod(keys, n_points)
    bounds = np.searchsorted(sources, np.arange(n_points + 1))
    neighbours = [targets[bounds[i] : bounds[i + 1]] for i in range(n_points)]
    return core, neighbours


def compute_fast_ordering(
    index: SpatialIndex,
    optics_config: OpticsConfig,
    fast_config: FastOpticsConfig | None = None,
    *,
    should_stop: Callable[[], bool] | None = None,
) -> OrderedProfile:
    """Approximate the OPTICS ordering of the points in ``index``.

    Parameters
    ----------
    index
        Spatial index over the points; only its coordinates are read.
    optics_config
        Supplies ``min_pts``, the largest set size kept by the splitting.
        ``epsilon`` is not used.
    fast_config
        Projection settings and the random seed; defaults to
        ``FastOpticsConfig()``.
    should_stop
        Optional callback checked before each point is ordered.

    Returns
    -------
    OrderedProfile
        Ordering with exactly ``len(index)`` entries and an unbounded
        generating distance. The same seed always gives the same ordering.

    Raises
    ------
    OrderingAbortedError
        If ``should_stop`` requested an abort.
    """
    fast_config = fast_config or FastOpticsConfig()
    rng = np.random.default_rng(fast_config.seed)
    n_points = index.n_points
    min_pts = optics_config.min_pts
    n_splits = fast_config.resolved_n_splits(n_points)
    n_projections = fast_config.resolved_n_projections(n_points)
    started = time.perf_counter()
    logger.debug(
        "Running FastOPTICS: n=%d, min_pts=%d, splits=%d, projections=%d, sample_mode=%s",
        n_points,
        min_pts,
        n_splits,
        n_projections,
        fast_config.sample_mode,
    )

    points = index.points
    split_sets: List[np.ndarray] = []
    if n_projections:
        directions = projection_directions(
            n_projections, index.n_dims, rng, fast_config.use_random_vectors
        )
        split_sets = compute_split_sets(
            directions @ points.T,
            min_pts,
            n_splits,
            rng,
            save_approximate_sets=fast_config.save_approximate_sets,
            sample_mode=fast_config.sample_mode,
        )
    core, neighbours = sample_neighbours(points, split_sets, fast_config.sample_mode)
    logger.debug("FastOPTICS sampled neighbours from %d split sets", len(split_sets))

    def neighbourhood(point: int) -> Neighbourhood:
        candidates = neighbours[point]
        distances = np.linalg.norm(points[candidates] - points[point], axis=1)
        return candidates, distances, float(core[point])

    profile = expand_cluster_order(
        n_points,
        neighbourhood,
        min_pts=min_pts,
        epsilon=config.UNDEFINED,
        should_stop=should_stop,
    )
    logger.debug("Finished FastOPTICS ordering in %.3fs", time.perf_counter() - started)
    return profile


__all__ = [
    "compute_fast_ordering",
    "compute_split_sets",
    "projection_directions",
    "sample_neighbours",
]
