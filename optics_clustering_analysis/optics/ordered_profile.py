"""The OPTICS cluster ordering annotated with reachability and core distances."""

from __future__ import annotations

import math
from typing import Iterator, NamedTuple

import numpy as np
import pandas as pd

from .. import config
from ..errors import ComputationError


class ProfileEntry(NamedTuple):
    """One position of the ordering."""

    index: int
    reachability: float
    core_distance: float
    predecessor: int

    @property
    def is_core_point(self) -> bool:
        return not math.isinf(self.core_distance)


def _read_only(values: np.ndarray) -> np.ndarray:
    values = np.array(values, copy=True)
    values.setflags(write=False)
    return values


class OrderedProfile:
    """Immutable OPTICS ordering of ``N`` points.

    Entry ``i`` describes the ``i``-th point processed by the traversal. An
    undefined reachability (first point of a chain) or core distance (fewer
    than ``min_pts`` neighbours) is stored as ``inf``; a missing predecessor as
    ``-1``.

    Parameters
    ----------
    order
        Original point index of each position.
    reachability
        Reachability distance of each position.
    core_distance
        Core distance of each position.
    predecessor
        Original index of the point each position was reached from.
    min_pts
        ``min_pts`` used for the traversal.
    epsilon
        Generating distance used for the traversal (``inf`` when unbounded).

    Raises
    ------
    ComputationError
        If the arrays are inconsistent or ``order`` is not a permutation.
    """

    def __init__(
        self,
        order: np.ndarray,
        reachability: np.ndarray,
        core_distance: np.ndarray,
        predecessor: np.ndarray,
        *,
        min_pts: int,
        epsilon: float,
    ):
        order = np.asarray(order, dtype=np.intp)
        reachability = np.asarray(reachability, dtype=np.float64)
        core_distance = np.asarray(core_distance, dtype=np.float64)
        predecessor = np.asarray(predecessor, dtype=np.intp)

        n = order.shape[0]
        if not (reachability.shape == core_distance.shape == predecessor.shape == (n,)):
            raise ComputationError("Profile arrays must all have the same length.")
        if n and not np.array_equal(np.sort(order), np.arange(n)):
            raise ComputationError("Profile order is not a permutation of the input points.")
        for name, values in (("reachability", reachability), ("core distance", core_distance)):
            if np.isnan(values).any() or (values < 0).any():
                raise ComputationError(f"Profile contains negative or NaN {name} values.")
        if n and ((predecessor < config.NO_PREDECESSOR) | (predecessor >= n)).any():
            raise ComputationError("Profile contains out-of-range predecessors.")

        self._order = _read_only(order)
        self._reachability = _read_only(reachability)
        self._core_distance = _read_only(core_distance)
        self._predecessor = _read_only(predecessor)
        positions = np.empty(n, dtype=np.intp)
        positions[order] = np.arange(n)
        self._positions = _read_only(positions)
        self.min_pts = int(min_pts)
        self.epsilon = float(epsilon)

    # ---------------- Sequence protocol ----------------

    def __len__(self) -> int:
        return int(self._order.shape[0])

    def __getitem__(self, position: int) -> ProfileEntry:
        return ProfileEntry(
            int(self._order[position]),
            float(self._reachability[position]),
            float(self._core_distance[position]),
            int(self._predecessor[position]),
        )

    def __iter__(self) -> Iterator[ProfileEntry]:
        for position in range(len(self)):
            yield self[position]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OrderedProfile):
            return NotImplemented
        return (
            self.min_pts == other.min_pts
            and self.epsilon == other.epsilon
            and np.array_equal(self._order, other._order)
            and np.array_equal(self._reachability, other._reachability)
            and np.array_equal(self._core_distance, other._core_distance)
            and np.array_equal(self._predecessor, other._predecessor)
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"OrderedProfile(n={len(self)}, min_pts={self.min_pts}, epsilon={self.epsilon:g})"

    # ---------------- Ordering views ----------------

    @property
    def order(self) -> np.ndarray:
        """Original point index at each position of the ordering."""
        return self._order

    @property
    def positions(self) -> np.ndarray:
        """Position in the ordering of each original point."""
        return self._positions

    @property
    def predecessors(self) -> np.ndarray:
        """Predecessor of each position (original index, ``-1`` when none)."""
        return self._predecessor

    def reachability_profile(self, convert: bool = False) -> np.ndarray:
        """Reachability distances in processing order.

        With ``convert=True`` undefined (``inf``) values are replaced by the
        generating distance, or by the largest finite distance in the profile
        when the traversal was unbounded.
        """
        return self._converted(self._reachability, convert)

    def core_distance_profile(self, convert: bool = False) -> np.ndarray:
        """Core distances in processing order (see :meth:`reachability_profile`)."""
        return self._converted(self._core_distance, convert)

    # ---------------- Input-order views ----------------

    def reachability_by_point(self, convert: bool = False) -> np.ndarray:
        """Reachability distances indexed by original point index."""
        return self._by_point(self.reachability_profile(convert))

    def core_distance_by_point(self, convert: bool = False) -> np.ndarray:
        """Core distances indexed by original point index."""
        return self._by_point(self.core_distance_profile(convert))

    def predecessor_by_point(self) -> np.ndarray:
        """Predecessor (original index) of every original point."""
        return self._by_point(np.array(self._predecessor))

    def core_mask(self) -> np.ndarray:
        """Boolean mask in processing order marking core points."""
        return np.isfinite(self._core_distance)

    def to_dataframe(self) -> pd.DataFrame:
        """Tabular view of the ordering, one row per position."""
        frame = pd.DataFrame(
            {
                "point_id": self._order,
                "reachability": self._reachability,
                "core_distance": self._core_distance,
                "predecessor": self._predecessor,
            }
        )
        frame.index.name = "order_position"
        return frame

    # ---------------- Internals ----------------

    def _fill_value(self) -> float:
        if not math.isinf(self.epsilon):
            return self.epsilon
        finite = np.concatenate(
            [
                self._reachability[np.isfinite(self._reachability)],
                self._core_distance[np.isfinite(self._core_distance)],
            ]
        )
        return float(finite.max()) if finite.size else 0.0

    def _converted(self, values: np.ndarray, convert: bool) -> np.ndarray:
        data = np.array(values, dtype=np.float64)
        if convert:
            data[np.isinf(data)] = self._fill_value()
        return data

    def _by_point(self, values: np.ndarray) -> np.ndarray:
        data = np.empty_like(values)
        data[self._order] = values
        return data


__all__ = ["OrderedProfile", "ProfileEntry"]
