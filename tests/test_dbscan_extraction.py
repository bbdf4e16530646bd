import math

import numpy as np
import pytest

from optics_clustering_analysis.errors import InvalidConfigurationError
from optics_clustering_analysis.hierarchy_analysis.dbscan_extraction import (
    extract_dbscan_clustering,
)
from optics_clustering_analysis.optics.ordered_profile import OrderedProfile

INF = math.inf


def _make_profile(reachability, core, epsilon=INF) -> OrderedProfile:
    n = len(reachability)
    predecessors = [-1] + list(range(n - 1))
    return OrderedProfile(
        np.arange(n), reachability, core, predecessors, min_pts=2, epsilon=epsilon
    )


@pytest.fixture
def profile() -> OrderedProfile:
    return _make_profile(
        reachability=[INF, 1.0, 1.0, 5.0, 1.0, INF, 0.5],
        core=[1.0, 1.0, 3.0, 1.0, 1.0, 4.0, 1.0],
    )


def test_flat_cut_builds_single_level_clusters(profile):
    tree = extract_dbscan_clustering(profile, 2.0)

    assert [(c.start, c.end, c.cluster_id, c.size) for c in tree.top_level()] == [
        (0, 2, 1, 3),
        (3, 4, 2, 2),
    ]
    assert tree.n_levels == 1
    assert tree.cluster_ids_in_order().tolist() == [1, 1, 1, 2, 2, 0, 0]


def test_core_only_skips_border_points(profile):
    tree = extract_dbscan_clustering(profile, 2.0, core_only=True)

    assert [(c.start, c.end, c.size) for c in tree.top_level()] == [(0, 1, 2), (3, 4, 2)]
    assert tree.cluster_ids_in_order().tolist() == [1, 1, 0, 2, 2, 0, 0]


def test_cut_below_every_core_distance_gives_noise(profile):
    tree = extract_dbscan_clustering(profile, 0.5)

    assert tree.is_empty
    assert (tree.labels() == 0).all()


def test_cut_must_not_exceed_the_generating_distance():
    bounded = _make_profile([INF, 1.0], [1.0, 1.0], epsilon=1.5)

    with pytest.raises(InvalidConfigurationError, match="must not exceed"):
        extract_dbscan_clustering(bounded, 2.0)
    with pytest.raises(InvalidConfigurationError, match="finite positive"):
        extract_dbscan_clustering(bounded, 0.0)
