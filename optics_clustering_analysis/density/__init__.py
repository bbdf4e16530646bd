"""Density-based clustering and outlier scores that share the spatial index."""

from .dbscan import DbscanResult, run_dbscan
from .local_outlier_probability import compute_local_outlier_probability

__all__ = ["DbscanResult", "run_dbscan", "compute_local_outlier_probability"]
