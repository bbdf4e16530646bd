"""Spatial indexing of point coordinates."""

from .spatial_index import SpatialIndex
from .generating_distance import (
    compute_generating_distance,
    estimate_generating_distance,
    unit_ball_volume,
    working_generating_distance,
)

__all__ = [
    "SpatialIndex",
    "compute_generating_distance",
    "estimate_generating_distance",
    "unit_ball_volume",
    "working_generating_distance",
]
