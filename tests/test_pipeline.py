import logging
import math

import numpy as np
import pytest

from optics_clustering_analysis.errors import (
    InvalidConfigurationError,
    InvalidInputError,
    OrderingAbortedError,
)
from optics_clustering_analysis.optics.parameters import FastOpticsConfig, OpticsConfig
from optics_clustering_analysis.pipeline import (
    OpticsResult,
    run_dbscan_on_points,
    run_fast_optics,
    run_optics,
)
from optics_clustering_analysis.spatial.generating_distance import estimate_generating_distance
from optics_clustering_analysis.spatial.spatial_index import SpatialIndex


def test_unit_square_flat_cut(unit_square_with_outlier):
    config = OpticsConfig(min_pts=2, extraction_mode="flat", epsilon_cut=1.5)

    result = run_optics(unit_square_with_outlier, config)

    assert isinstance(result, OpticsResult)
    assert result.n_clusters == 1
    cluster = result.tree.top_level()[0]
    assert (cluster.start, cluster.end, cluster.size) == (0, 3, 4)
    assert result.labels().tolist() == [1, 1, 1, 1, 0]


def test_dense_region_and_outlier():
    rng = np.random.default_rng(3)
    dense = rng.normal(scale=0.2, size=(30, 2))
    points = np.vstack([dense, [[25.0, 25.0]]])

    result = run_optics(points, OpticsConfig(min_pts=4, extraction_mode="flat", epsilon_cut=2.0))

    assert result.n_clusters == 1
    labels = result.labels()
    assert labels[-1] == 0
    assert (labels[:-1] == 1).all()


def test_two_blobs_are_separated(two_blobs):
    result = run_optics(two_blobs, OpticsConfig(min_pts=5, extraction_mode="flat", epsilon_cut=2.0))

    labels = result.labels()
    assert result.n_clusters == 2
    assert len(set(labels[:40].tolist())) == 1
    assert len(set(labels[40:].tolist())) == 1
    assert labels[0] != labels[40]


def test_hierarchical_run_produces_a_consistent_tree(two_blobs):
    result = run_optics(two_blobs, OpticsConfig(min_pts=5, xi=0.05))

    result.tree.validate()
    known_ids = {c.cluster_id for c in result.tree.iter_clusters()}
    assert set(result.labels().tolist()) <= known_ids | {0}
    assert set(result.tree.top_level_labels().tolist()) <= set(result.tree.root_ids) | {0}


def test_runs_are_deterministic(two_blobs):
    config = OpticsConfig(min_pts=5, xi=0.05)

    first = run_optics(two_blobs, config)
    second = run_optics(SpatialIndex.build(two_blobs), config)

    assert first.profile == second.profile
    assert first.tree == second.tree


def test_empty_and_single_point_inputs():
    empty = run_optics([], OpticsConfig(min_pts=3))
    single = run_optics([[0.0, 0.0]], OpticsConfig(min_pts=2))

    assert len(empty.profile) == 0 and empty.tree.is_empty
    assert len(single.profile) == 1
    assert math.isinf(single.profile[0].reachability)
    assert single.tree.is_empty


def test_reextract_reuses_the_ordering(two_blobs):
    result = run_optics(two_blobs, OpticsConfig(min_pts=5, epsilon=3.0))

    flat = result.reextract(result.config.with_extraction(extraction_mode="flat", epsilon_cut=2.0))

    assert flat.profile is result.profile
    assert flat.n_clusters == 2
    with pytest.raises(InvalidConfigurationError, match="min_pts and epsilon"):
        result.reextract(OpticsConfig(min_pts=6, epsilon=3.0))


def test_labels_core_only(unit_square_with_outlier):
    config = OpticsConfig(min_pts=3, extraction_mode="flat", epsilon_cut=1.0)

    result = run_optics(unit_square_with_outlier, config)

    # Every corner has exactly three points (itself included) within 1.0.
    assert result.labels(core=True).tolist() == [1, 1, 1, 1, 0]


def test_assignment_table(two_blobs):
    result = run_optics(two_blobs, OpticsConfig(min_pts=5, extraction_mode="flat", epsilon_cut=2.0))

    table = result.assignments()

    assert len(table) == len(two_blobs)
    assert table["cluster_size"].max() == 40


def test_invalid_input_raises_before_any_work():
    with pytest.raises(InvalidInputError):
        run_optics([[0.0, 1.0], [np.nan, 2.0]])


def test_cancellation_propagates(two_blobs):
    with pytest.raises(OrderingAbortedError):
        run_optics(two_blobs, OpticsConfig(min_pts=5), should_stop=lambda: True)


def test_run_logs_a_summary(caplog, unit_square_with_outlier):
    with caplog.at_level(logging.INFO, logger="optics_clustering_analysis.pipeline"):
        run_optics(unit_square_with_outlier, OpticsConfig(min_pts=2))

    assert "OPTICS clustered 5 points" in caplog.text


def test_run_dbscan_on_points(unit_square_with_outlier):
    result = run_dbscan_on_points(unit_square_with_outlier, min_pts=2, epsilon=1.5)

    assert result.labels().tolist() == [1, 1, 1, 1, 0]


def test_estimated_epsilon_is_reported_on_the_profile(two_blobs):
    result = run_optics(two_blobs, OpticsConfig(min_pts=5))

    expected = estimate_generating_distance(SpatialIndex.build(two_blobs), 5)
    assert result.profile.epsilon == pytest.approx(expected)
    assert math.isfinite(result.profile.epsilon)


def test_run_fast_optics_logs_a_summary(caplog, two_blobs):
    config = OpticsConfig(min_pts=5, extraction_mode="flat", epsilon_cut=2.0)

    with caplog.at_level(logging.INFO, logger="optics_clustering_analysis.pipeline"):
        result = run_fast_optics(two_blobs, config, FastOpticsConfig(seed=1))

    assert "FastOPTICS clustered 80 points" in caplog.text
    assert math.isinf(result.profile.epsilon)
