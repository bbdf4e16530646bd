"""
Central configuration for the OPTICS clustering analysis library.
"""

import math

# --- Sentinels ---

# Cluster id reserved for points that are not assigned to any cluster.
NOISE: int = 0

# Value stored for an undefined core or reachability distance.
UNDEFINED: float = math.inf

# Predecessor recorded for points that start a new chain in the ordering.
NO_PREDECESSOR: int = -1

# --- OPTICS Parameters ---

# Default number of points (including the point itself) within the generating
# distance for a point to be a core point.
DEFAULT_MIN_PTS: int = 5

# Default steepness for xi cluster extraction.
# Higher values only find the most significant density transitions.
DEFAULT_XI: float = 0.05

# Default extraction policy: "flat" (DBSCAN-equivalent cut) or "hierarchical" (xi).
DEFAULT_EXTRACTION_MODE: str = "hierarchical"

# --- FastOPTICS Parameters ---

# The number of split rounds and of random projections default to this
# constant times log2(N), following Schneider & Vlachos (2013).
FAST_OPTICS_LOG_CONSTANT: int = 20

# A split set is kept once its size is within this fraction of min_pts when
# approximate sets are enabled.
FAST_OPTICS_SIZE_TOLERANCE: float = 2.0 / 3.0

# --- Local Outlier Probability Parameters ---

# Default neighbourhood size for LoOP scores.
DEFAULT_LOOP_NEIGHBOURS: int = 10

# Number of standard deviations used to normalise the probabilistic local
# outlier factor (lambda in the LoOP paper).
DEFAULT_LOOP_LAMBDA: float = 3.0
