import os
import sys

import numpy as np
import pytest

# Ensure the project root is on sys.path so tests can import
# ``optics_clustering_analysis`` when running directly from the repository.
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


@pytest.fixture
def unit_square_with_outlier() -> np.ndarray:
    """Four corners of the unit square plus one far-away point."""
    return np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [1.0, 1.0], [50.0, 50.0]])


@pytest.fixture
def two_blobs() -> np.ndarray:
    """Two well separated Gaussian blobs of 40 points each."""
    rng = np.random.default_rng(7)
    first = rng.normal(loc=(0.0, 0.0), scale=0.3, size=(40, 2))
    second = rng.normal(loc=(10.0, 10.0), scale=0.3, size=(40, 2))
    return np.vstack([first, second])
