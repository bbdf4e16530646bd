"""
Cluster extraction from OPTICS orderings.

This package provides:
- The cluster tree model (arena of nested clusters)
- Flat DBSCAN-equivalent extraction at a cut distance
- Hierarchical xi extraction from steep areas of the reachability plot
- Per-point assignment tables
"""

from .cluster_tree import ClusterTree, OpticsCluster
from .dbscan_extraction import extract_dbscan_clustering
from .xi_extraction import extract_xi_clusters
from .extraction import extract_clusters
from .cluster_assignments import build_point_cluster_assignments, noise_points

__all__ = [
    "ClusterTree",
    "OpticsCluster",
    "extract_dbscan_clustering",
    "extract_xi_clusters",
    "extract_clusters",
    "build_point_cluster_assignments",
    "noise_points",
]
