"""Tree utility functions for the cluster arena.

Low-level operations on ``{cluster_id: child_ids}`` mappings that don't depend
on hierarchy_analysis modules, avoiding circular import issues.
"""

from __future__ import annotations

from collections import deque
from typing import Dict, Iterable, Iterator, List, Mapping, Sequence


def compute_cluster_levels(
    children: Mapping[int, Sequence[int]], roots: Iterable[int]
) -> Dict[int, int]:
    """Compute the nesting level of each cluster from the roots via BFS.

    Parameters
    ----------
    children
        Mapping from cluster id to the ids of its direct children.
    roots
        Ids of the top-level clusters.

    Returns
    -------
    Dict[int, int]
        Mapping from cluster id to level (roots = 0).

    Raises
    ------
    ValueError
        If a cluster is reachable from more than one parent.
    """
    levels: Dict[int, int] = {}
    queue = deque()
    for root in roots:
        levels[root] = 0
        queue.append(root)

    while queue:
        node = queue.popleft()
        for child in children.get(node, ()):
            if child in levels:
                raise ValueError(f"Cluster {child} has more than one parent.")
            levels[child] = levels[node] + 1
            queue.append(child)

    return levels


def iter_depth_first(
    children: Mapping[int, Sequence[int]], roots: Sequence[int]
) -> Iterator[int]:
    """Yield cluster ids depth-first, parents before their children."""
    stack: List[int] = list(reversed(roots))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(children.get(node, ())))


__all__ = [
    "compute_cluster_levels",
    "iter_depth_first",
]
