"""Low-level helpers shared across the package."""

from .data_utils import as_point_array, check_distances, stack_coordinates
from .tree_utils import compute_cluster_levels, iter_depth_first

__all__ = [
    "as_point_array",
    "check_distances",
    "stack_coordinates",
    "compute_cluster_levels",
    "iter_depth_first",
]
