"""
OPTICS reachability ordering.

This package provides:
- The immutable clustering configuration
- The indexed priority queue used as the seed list
- The traversal that produces the ordered reachability profile
- The approximate FastOPTICS ordering from random projections
"""

from .parameters import ExtractionMode, FastOpticsConfig, OpticsConfig, SampleMode
from .priority_queue import ReachabilityHeap
from .ordered_profile import OrderedProfile, ProfileEntry
from .reachability_ordering import compute_ordering, core_distance, expand_cluster_order
from .fast_optics import compute_fast_ordering

__all__ = [
    "ExtractionMode",
    "FastOpticsConfig",
    "OpticsConfig",
    "SampleMode",
    "ReachabilityHeap",
    "OrderedProfile",
    "ProfileEntry",
    "compute_ordering",
    "core_distance",
    "expand_cluster_order",
    "compute_fast_ordering",
]
