"""Graph export of cluster hierarchies."""

from .cluster_graph import ROOT_NODE, cluster_depths, cluster_tree_to_digraph

__all__ = ["ROOT_NODE", "cluster_depths", "cluster_tree_to_digraph"]
