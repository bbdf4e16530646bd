"""Immutable clustering configuration.

A single :class:`OpticsConfig` value is passed explicitly into every entry
point; nothing is read from module state at run time, so independent requests
running concurrently cannot interfere.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Literal

import numpy as np

from .. import config
from ..errors import InvalidConfigurationError
from ..spatial.generating_distance import working_generating_distance

ExtractionMode = Literal["flat", "hierarchical"]
SampleMode = Literal["random", "median", "all"]

_EXTRACTION_MODES = ("flat", "hierarchical")
_SAMPLE_MODES = ("random", "median", "all")


def _is_int(value) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


@dataclass(frozen=True)
class OpticsConfig:
    """Parameters for one OPTICS ordering and cluster extraction.

    Attributes
    ----------
    min_pts
        Number of points (the point itself included) that must lie within
        ``epsilon`` for a point to be a core point.
    epsilon
        Generating distance. ``None`` estimates it from the data when the
        points are ordered; ``inf`` means unbounded.
    extraction_mode
        ``"flat"`` for a DBSCAN-equivalent cut at ``epsilon_cut``;
        ``"hierarchical"`` for xi (steepness) extraction.
    epsilon_cut
        Cut distance for flat extraction. Defaults to ``epsilon`` and must be
        given when ``epsilon`` is estimated or unbounded.
    xi
        Steepness ratio in ``(0, 1)`` for hierarchical extraction.
    min_cluster_size
        Minimum number of profile entries in a xi cluster. Defaults to ``min_pts``.
    core_only
        Flat extraction: only core points extend a cluster.
    top_level_only
        Hierarchical extraction: merge nested clusters into their top-level parent.
    correct_ends
        Hierarchical extraction: trim points whose predecessor lies outside
        the cluster from the cluster end.
    exclude_last_steep_up
        Hierarchical extraction: drop the last point of the steep-up area when it
        is itself xi-steep.
    upper_limit, lower_limit
        Hierarchical extraction: bounds on the reachability of the first and last
        reachable points of a cluster.
    """

    min_pts: int = config.DEFAULT_MIN_PTS
    epsilon: float | None = None
    extraction_mode: ExtractionMode = config.DEFAULT_EXTRACTION_MODE
    epsilon_cut: float | None = None
    xi: float = config.DEFAULT_XI
    min_cluster_size: int | None = None
    core_only: bool = False
    top_level_only: bool = False
    correct_ends: bool = True
    exclude_last_steep_up: bool = False
    upper_limit: float | None = None
    lower_limit: float | None = None

    def __post_init__(self) -> None:
        if not _is_int(self.min_pts) or self.min_pts < 1:
            raise InvalidConfigurationError(
                f"min_pts must be an integer >= 1; got {self.min_pts!r}."
            )
        if self.epsilon is not None:
            eps = float(self.epsilon)
            if math.isnan(eps) or eps <= 0:
                raise InvalidConfigurationError(
                    f"epsilon must be positive or unbounded; got {self.epsilon!r}."
                )
        if self.extraction_mode not in _EXTRACTION_MODES:
            raise InvalidConfigurationError(
                f"Unknown extraction_mode {self.extraction_mode!r}; "
                f"expected one of {_EXTRACTION_MODES}."
            )

        if self.extraction_mode == "flat":
            self._validate_flat()
        else:
            self._validate_hierarchical()

    def _validate_flat(self) -> None:
        cut = self.resolved_epsilon_cut
        if cut is None:
            raise InvalidConfigurationError(
                "epsilon_cut must be given when epsilon is estimated from the data."
            )
        if math.isnan(cut) or cut <= 0 or math.isinf(cut):
            raise InvalidConfigurationError(
                f"epsilon_cut must be a finite positive distance; got {cut!r}."
            )
        if not self.is_auto and cut > self.generating_distance:
            raise InvalidConfigurationError(
                f"epsilon_cut ({cut:g}) must not exceed epsilon ({self.generating_distance:g})."
            )

    def _validate_hierarchical(self) -> None:
        xi = float(self.xi)
        if not 0.0 < xi < 1.0:
            raise InvalidConfigurationError(f"xi must lie in (0, 1); got {self.xi!r}.")
        if self.min_cluster_size is not None and (
            not _is_int(self.min_cluster_size) or self.min_cluster_size < 1
        ):
            raise InvalidConfigurationError(
                f"min_cluster_size must be an integer >= 1; got {self.min_cluster_size!r}."
            )
        if self.upper_limit is not None and not float(self.upper_limit) > 0:
            raise InvalidConfigurationError(
                f"upper_limit must be positive; got {self.upper_limit!r}."
            )
        if self.lower_limit is not None and not float(self.lower_limit) >= 0:
            raise InvalidConfigurationError(
                f"lower_limit must be non-negative; got {self.lower_limit!r}."
            )

    # ---------------- Derived values ----------------

    @property
    def generating_distance(self) -> float | None:
        """The requested generating distance, ``None`` when it is estimated."""
        return None if self.epsilon is None else float(self.epsilon)

    @property
    def is_auto(self) -> bool:
        return self.epsilon is None

    @property
    def is_unbounded(self) -> bool:
        return self.epsilon is not None and math.isinf(float(self.epsilon))

    @property
    def resolved_epsilon_cut(self) -> float | None:
        """Flat cut distance, defaulting to the generating distance."""
        if self.epsilon_cut is None:
            return self.generating_distance
        return float(self.epsilon_cut)

    def working_generating_distance(self, index) -> float:
        """Generating distance used to order the points of ``index``.

        An estimated or clipped distance never drops below the flat cut, so
        the flat extraction stays valid for the resulting ordering.
        """
        distance = working_generating_distance(index, self.min_pts, self.epsilon)
        if self.extraction_mode == "flat":
            distance = max(distance, self.resolved_epsilon_cut)
        return distance

    @property
    def resolved_min_cluster_size(self) -> int:
        """Minimum xi cluster size, defaulting to ``min_pts``."""
        if self.min_cluster_size is None:
            return int(self.min_pts)
        return int(self.min_cluster_size)

    def with_extraction(self, **changes) -> "OpticsConfig":
        """Return a copy with different extraction settings (validated again)."""
        return replace(self, **changes)


@dataclass(frozen=True)
class FastOpticsConfig:
    """Random projection settings for the FastOPTICS ordering.

    Attributes
    ----------
    n_splits
        Number of times the points are recursively split into small sets.
        ``None`` uses ``20 * log2(N)``.
    n_projections
        Number of random lines the points are projected onto.
        ``None`` uses ``20 * log2(N)``.
    use_random_vectors
        Draw projection directions uniformly from the unit sphere. Otherwise
        two-dimensional data use directions evenly spaced over a half circle.
    save_approximate_sets
        Stop splitting once a set is within two thirds of ``min_pts`` in size,
        instead of only when it is no larger than ``min_pts``.
    sample_mode
        How neighbours are sampled within a set: ``"random"`` links each point
        to its two neighbours in a random cyclic order, ``"median"`` links
        every point to the median of the set along the projection, and
        ``"all"`` links every pair.
    seed
        Seed for :func:`numpy.random.default_rng`. ``None`` draws fresh
        entropy, so the ordering is only reproducible with a seed.
    """

    n_splits: int | None = None
    n_projections: int | None = None
    use_random_vectors: bool = False
    save_approximate_sets: bool = False
    sample_mode: SampleMode = "random"
    seed: int | None = None

    def __post_init__(self) -> None:
        for name in ("n_splits", "n_projections"):
            value = getattr(self, name)
            if value is not None and (not _is_int(value) or value < 1):
                raise InvalidConfigurationError(
                    f"{name} must be a positive integer; got {value!r}."
                )
        if self.sample_mode not in _SAMPLE_MODES:
            raise InvalidConfigurationError(
                f"Unknown sample_mode {self.sample_mode!r}; expected one of {_SAMPLE_MODES}."
            )

    def resolved_n_splits(self, n_points: int) -> int:
        """Number of split rounds for ``n_points`` points (0 below two points)."""
        return _log_scaled(self.n_splits, n_points)

    def resolved_n_projections(self, n_points: int) -> int:
        """Number of projections for ``n_points`` points (0 below two points)."""
        return _log_scaled(self.n_projections, n_points)


def _log_scaled(value: int | None, n_points: int) -> int:
    if n_points < 2:
        return 0
    if value is not None:
        return int(value)
    return int(config.FAST_OPTICS_LOG_CONSTANT * math.log2(n_points))


__all__ = ["OpticsConfig", "FastOpticsConfig", "ExtractionMode", "SampleMode"]
