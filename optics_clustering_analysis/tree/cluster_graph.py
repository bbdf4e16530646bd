"""Graph view of an extracted cluster hierarchy.

The cluster tree is exported as a ``networkx.DiGraph`` with a synthetic
``"root"`` node above the top-level clusters, so the hierarchy can be
traversed, drawn or compared with standard graph tooling.
"""

from __future__ import annotations

from typing import Dict, Hashable

import networkx as nx

from ..hierarchy_analysis.cluster_tree import ClusterTree

ROOT_NODE = "root"


def cluster_tree_to_digraph(tree: ClusterTree) -> nx.DiGraph:
    """Build a directed graph with an edge from every parent to its children.

    Cluster nodes are keyed by cluster id and carry the attributes ``start``,
    ``end``, ``level``, ``size`` and ``length``. Top-level clusters are
    children of :data:`ROOT_NODE`.
    """
    graph = nx.DiGraph()
    graph.add_node(ROOT_NODE, level=-1)
    for cluster in tree.iter_clusters():
        graph.add_node(
            cluster.cluster_id,
            start=cluster.start,
            end=cluster.end,
            level=cluster.level,
            size=cluster.size,
            length=cluster.length,
        )
    for cluster in tree.iter_clusters():
        if cluster.level == 0:
            graph.add_edge(ROOT_NODE, cluster.cluster_id)
        for child in cluster.children:
            graph.add_edge(cluster.cluster_id, child)
    return graph


def cluster_depths(graph: nx.DiGraph) -> Dict[Hashable, int]:
    """Compute depth of each node from the root via BFS.

    Parameters
    ----------
    graph
        Directed acyclic graph representing the hierarchy.

    Returns
    -------
    Dict[Hashable, int]
        Mapping from node to depth (root = 0).

    Raises
    ------
    ValueError
        If the graph has no root node (all nodes have parents).
    """
    roots = [n for n in graph.nodes() if graph.in_degree(n) == 0]
    if not roots:
        raise ValueError("Graph has no root node (all nodes have parents)")

    depths: Dict[Hashable, int] = {root: 0 for root in roots}
    for root in roots:
        for parent, child in nx.bfs_edges(graph, root):
            if child not in depths:
                depths[child] = depths[parent] + 1
    return depths


__all__ = ["ROOT_NODE", "cluster_tree_to_digraph", "cluster_depths"]
