"""Cluster hierarchy extracted from an OPTICS ordering.

Clusters are stored in an arena keyed by cluster id; each record holds the ids
of its children rather than references to them. A :class:`ClusterTree` is
built once by an extraction routine and is read-only afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Sequence, Tuple

import numpy as np

from .. import config
from ..core_utils.tree_utils import compute_cluster_levels, iter_depth_first
from ..errors import ComputationError


@dataclass(frozen=True)
class OpticsCluster:
    """A contiguous range ``[start, end]`` of the ordering forming one cluster.

    ``size`` counts the points assigned to this cluster itself, i.e. the range
    minus the points claimed by child clusters (and minus non-core points for
    core-only flat extraction).
    """

    start: int
    end: int
    cluster_id: int
    level: int = 0
    size: int = 0
    children: Tuple[int, ...] = ()

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def n_children(self) -> int:
        return len(self.children)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def contains(self, other: "OpticsCluster") -> bool:
        """Whether ``other`` lies inside this cluster's range."""
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return (
            f"Cluster {self.cluster_id} [{self.start}:{self.end}] "
            f"level={self.level} size={self.size}/{self.length} children={self.n_children}"
        )


class ClusterTree:
    """Immutable forest of :class:`OpticsCluster` records.

    Parameters
    ----------
    clusters
        Mapping from cluster id to its record.
    roots
        Ids of the top-level clusters, ordered by start position.
    assignments
        Cluster id of every position of the ordering (``0`` for noise).
    order
        Original point index at every position of the ordering.
    """

    def __init__(
        self,
        clusters: Mapping[int, OpticsCluster],
        roots: Sequence[int],
        assignments: np.ndarray,
        order: np.ndarray,
    ):
        self._clusters: Mapping[int, OpticsCluster] = MappingProxyType(dict(clusters))
        self._roots: Tuple[int, ...] = tuple(int(r) for r in roots)
        self._assignments = np.array(assignments, dtype=np.intp)
        self._assignments.setflags(write=False)
        self._order = np.array(order, dtype=np.intp)
        self._order.setflags(write=False)

    # ---------------- Construction ----------------

    @classmethod
    def empty(cls, order: np.ndarray) -> "ClusterTree":
        """A tree without clusters: every point is noise."""
        order = np.asarray(order, dtype=np.intp)
        return cls({}, (), np.full(order.shape[0], config.NOISE, dtype=np.intp), order)

    @classmethod
    def from_ranges(
        cls,
        ranges: Mapping[int, Tuple[int, int, Iterable[int]]],
        roots: Iterable[int],
        assignments: np.ndarray,
        order: np.ndarray,
    ) -> "ClusterTree":
        """Build a validated tree from raw ``{id: (start, end, child_ids)}`` records.

        Children and roots are ordered by start position, levels are derived
        from the nesting, and sizes are counted from ``assignments``.

        Raises
        ------
        ComputationError
            If the records violate the nesting invariants.
        """
        assignments = np.asarray(assignments, dtype=np.intp)

        def by_start(ids: Iterable[int]) -> Tuple[int, ...]:
            return tuple(sorted(ids, key=lambda cid: (ranges[cid][0], ranges[cid][1])))

        children = {cid: by_start(child_ids) for cid, (_, _, child_ids) in ranges.items()}
        root_ids = by_start(roots)
        try:
            levels = compute_cluster_levels(children, root_ids)
        except ValueError as exc:
            raise ComputationError(str(exc)) from exc
        if set(levels) != set(ranges):
            raise ComputationError("Cluster records are not all reachable from the roots.")

        max_id = max(ranges) if ranges else 0
        sizes = np.bincount(assignments[assignments > config.NOISE], minlength=max_id + 1)

        clusters: Dict[int, OpticsCluster] = {
            cid: OpticsCluster(
                start=int(start),
                end=int(end),
                cluster_id=int(cid),
                level=levels[cid],
                size=int(sizes[cid]),
                children=children[cid],
            )
            for cid, (start, end, _) in ranges.items()
        }
        tree = cls(clusters, root_ids, assignments, order)
        tree.validate()
        return tree

    # ---------------- Structural queries ----------------

    def __len__(self) -> int:
        return len(self._clusters)

    @property
    def n_clusters(self) -> int:
        return len(self._clusters)

    @property
    def n_levels(self) -> int:
        if not self._clusters:
            return 0
        return 1 + max(c.level for c in self._clusters.values())

    @property
    def is_empty(self) -> bool:
        return not self._clusters

    @property
    def root_ids(self) -> Tuple[int, ...]:
        return self._roots

    def top_level(self) -> List[OpticsCluster]:
        """The level-0 clusters, ordered by start position."""
        return [self._clusters[cid] for cid in self._roots]

    def cluster(self, cluster_id: int) -> OpticsCluster:
        try:
            return self._clusters[cluster_id]
        except KeyError:
            raise KeyError(f"No cluster with id {cluster_id}.") from None

    def children(self, cluster: OpticsCluster | int) -> List[OpticsCluster]:
        record = self.cluster(cluster) if isinstance(cluster, (int, np.integer)) else cluster
        return [self._clusters[cid] for cid in record.children]

    def iter_clusters(self) -> Iterator[OpticsCluster]:
        """Iterate over all clusters depth-first, parents before children."""
        children = {cid: c.children for cid, c in self._clusters.items()}
        for cid in iter_depth_first(children, self._roots):
            yield self._clusters[cid]

    def descendant_ids(self, cluster_id: int) -> List[int]:
        """Ids of a cluster and every cluster nested inside it."""
        self.cluster(cluster_id)
        children = {cid: c.children for cid, c in self._clusters.items()}
        return list(iter_depth_first(children, [cluster_id]))

    # ---------------- Point assignments ----------------

    def cluster_ids_in_order(self) -> np.ndarray:
        """Cluster id of each position of the ordering (``0`` = noise)."""
        return np.array(self._assignments)

    def labels(self, core_mask: np.ndarray | None = None) -> np.ndarray:
        """Cluster id of each original point (deepest cluster, ``0`` = noise).

        Parameters
        ----------
        core_mask
            Optional boolean mask in processing order. Positions where it is
            ``False`` are reported as noise.
        """
        assignments = np.array(self._assignments)
        if core_mask is not None:
            assignments[~np.asarray(core_mask, dtype=bool)] = config.NOISE
        labels = np.empty_like(assignments)
        labels[self._order] = assignments
        return labels

    def top_level_labels(self) -> np.ndarray:
        """Id of the top-level cluster containing each original point."""
        in_order = np.full(self._order.shape[0], config.NOISE, dtype=np.intp)
        for cid in self._roots:
            members = np.isin(self._assignments, self.descendant_ids(cid))
            in_order[members] = cid
        labels = np.empty_like(in_order)
        labels[self._order] = in_order
        return labels

    def clusters_from_order(
        self, start: int, end: int, include_children: bool = False
    ) -> List[int]:
        """Ids of the top-level clusters overlapping positions ``[start, end]``.

        The range is clipped to the ordering; a range that misses the ordering
        returns an empty list. With ``include_children`` the ids of all clusters
        nested in each overlapping cluster follow it.
        """
        n = self._order.shape[0]
        lo, hi = min(start, end), max(start, end)
        if not self._clusters or lo >= n or hi < 0:
            return []
        lo, hi = max(lo, 0), min(hi, n - 1)

        found: List[int] = []
        for cluster in self.top_level():
            if cluster.start <= hi and lo <= cluster.end:
                if include_children:
                    found.extend(self.descendant_ids(cluster.cluster_id))
                else:
                    found.append(cluster.cluster_id)
        return found

    def members(self, cluster_ids: Iterable[int]) -> np.ndarray:
        """Original indices of the points in the given clusters.

        Points are grouped by the order of ``cluster_ids`` and listed in
        processing order within a cluster. Nested clusters include the points of
        their children; a point is only reported once. Unknown ids are ignored.
        """
        covered = np.zeros(self._order.shape[0], dtype=bool)
        result: List[np.ndarray] = []
        for cid in cluster_ids:
            if cid not in self._clusters:
                continue
            mask = np.isin(self._assignments, self.descendant_ids(cid)) & ~covered
            covered |= mask
            result.append(self._order[mask])
        if not result:
            return np.empty(0, dtype=np.intp)
        return np.concatenate(result)

    # ---------------- Invariants ----------------

    def validate(self) -> None:
        """Check the nesting invariants.

        Raises
        ------
        ComputationError
            If any range is malformed, a child is not strictly inside its
            parent, siblings overlap, or levels and sizes are inconsistent.
        """
        n = self._order.shape[0]
        if self._assignments.shape != (n,):
            raise ComputationError("Assignments do not match the ordering length.")
        if config.NOISE in self._clusters:
            raise ComputationError("Cluster id 0 is reserved for noise.")

        for cluster in self._clusters.values():
            if not 0 <= cluster.start <= cluster.end < n:
                raise ComputationError(f"Invalid range for {cluster}.")
            if cluster.size > cluster.length:
                raise ComputationError(f"Size exceeds length for {cluster}.")
            self._check_siblings(self.children(cluster), cluster.level + 1, parent=cluster)
        self._check_siblings(self.top_level(), 0, parent=None)

    @staticmethod
    def _check_siblings(
        siblings: List[OpticsCluster], level: int, parent: OpticsCluster | None
    ) -> None:
        previous_end = -1
        for child in siblings:
            if child.level != level:
                raise ComputationError(f"Unexpected level for {child}; expected {level}.")
            if child.start <= previous_end:
                raise ComputationError(f"Sibling ranges overlap at {child}.")
            previous_end = child.end
            if parent is not None and (
                not parent.contains(child) or child.length == parent.length
            ):
                raise ComputationError(f"{child} is not strictly inside {parent}.")

    # ---------------- Dunder helpers ----------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ClusterTree):
            return NotImplemented
        return (
            dict(self._clusters) == dict(other._clusters)
            and self._roots == other._roots
            and np.array_equal(self._assignments, other._assignments)
            and np.array_equal(self._order, other._order)
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"ClusterTree(n_clusters={self.n_clusters}, n_levels={self.n_levels})"

    def __str__(self) -> str:
        lines = [repr(self)]
        for cluster in self.iter_clusters():
            lines.append("  " * (cluster.level + 1) + str(cluster))
        return "\n".join(lines)


__all__ = ["OpticsCluster", "ClusterTree"]
