"""Select the cluster extraction policy configured for a run."""

from __future__ import annotations

from ..optics.ordered_profile import OrderedProfile
from ..optics.parameters import OpticsConfig
from .cluster_tree import ClusterTree
from .dbscan_extraction import extract_dbscan_clustering
from .xi_extraction import extract_xi_clusters


def extract_clusters(profile: OrderedProfile, optics_config: OpticsConfig) -> ClusterTree:
    """Extract clusters from ``profile`` using ``optics_config.extraction_mode``.

    ``"flat"`` cuts the reachability plot at the resolved ``epsilon_cut``;
    ``"hierarchical"`` runs xi extraction with the configured options.
    """
    if optics_config.extraction_mode == "flat":
        return extract_dbscan_clustering(
            profile,
            optics_config.resolved_epsilon_cut,
            core_only=optics_config.core_only,
        )
    return extract_xi_clusters(
        profile,
        optics_config.xi,
        min_cluster_size=optics_config.resolved_min_cluster_size,
        top_level_only=optics_config.top_level_only,
        correct_ends=optics_config.correct_ends,
        exclude_last_steep_up=optics_config.exclude_last_steep_up,
        upper_limit=optics_config.upper_limit,
        lower_limit=optics_config.lower_limit,
    )


__all__ = ["extract_clusters"]
