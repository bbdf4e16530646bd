import math

import numpy as np
import pytest

from optics_clustering_analysis.errors import OrderingAbortedError
from optics_clustering_analysis.optics.fast_optics import (
    compute_fast_ordering,
    compute_split_sets,
    projection_directions,
    sample_neighbours,
)
from optics_clustering_analysis.optics.parameters import FastOpticsConfig, OpticsConfig
from optics_clustering_analysis.pipeline import run_fast_optics
from optics_clustering_analysis.spatial.spatial_index import SpatialIndex

# Right triangle with sides 3, 4 and 5 plus a point that is never sampled.
TRIANGLE = np.array([[0.0, 0.0], [3.0, 0.0], [0.0, 4.0], [10.0, 10.0]])


def _fast_order(points, min_pts=5, **fast_kwargs):
    return compute_fast_ordering(
        SpatialIndex.build(points), OpticsConfig(min_pts=min_pts), FastOpticsConfig(**fast_kwargs)
    )


def test_half_circle_directions_in_two_dimensions():
    directions = projection_directions(4, 2, np.random.default_rng(0))

    half = math.sqrt(0.5)
    expected = [[0.0, 1.0], [half, half], [1.0, 0.0], [half, -half]]
    np.testing.assert_allclose(directions, expected, atol=1e-12)


@pytest.mark.parametrize("n_dims, use_random_vectors", [(3, False), (2, True)])
def test_random_directions_are_unit_vectors(n_dims, use_random_vectors):
    directions = projection_directions(6, n_dims, np.random.default_rng(1), use_random_vectors)

    assert directions.shape == (6, n_dims)
    np.testing.assert_allclose(np.linalg.norm(directions, axis=1), 1.0)


@pytest.mark.parametrize("save_approximate_sets, largest", [(False, 5), (True, 8)])
def test_split_sets_are_small(save_approximate_sets, largest):
    rng = np.random.default_rng(2)
    projected = rng.normal(size=(3, 60))

    split_sets = compute_split_sets(
        projected, 5, 4, rng, save_approximate_sets=save_approximate_sets
    )

    assert split_sets
    for members in split_sets:
        assert 2 <= len(members) <= largest
        assert len(set(members.tolist())) == len(members)
        assert members.min() >= 0 and members.max() < 60


def test_median_sets_are_sorted_along_a_projection():
    rng = np.random.default_rng(3)
    # One projection only, so every set is sorted along it.
    projected = rng.normal(size=(1, 40))

    split_sets = compute_split_sets(projected, 4, 2, rng, sample_mode="median")

    for members in split_sets:
        assert np.all(np.diff(projected[0, members]) >= 0)


def test_two_points_form_a_single_set():
    split_sets = compute_split_sets(np.zeros((5, 2)), 5, 10, np.random.default_rng(0))

    assert [s.tolist() for s in split_sets] == [[0, 1]]


def test_identical_points_are_still_split():
    split_sets = compute_split_sets(np.zeros((2, 20)), 3, 1, np.random.default_rng(0))

    assert sorted(i for s in split_sets for i in s.tolist()) == list(range(20))
    assert all(len(s) <= 3 for s in split_sets)


def test_core_distance_is_the_mean_sampled_distance():
    core, neighbours = sample_neighbours(TRIANGLE, [np.array([0, 1, 2])], "all")

    np.testing.assert_allclose(core[:3], [3.5, 4.0, 4.5])
    assert math.isinf(core[3])
    assert [n.tolist() for n in neighbours] == [[1, 2], [0, 2], [0, 1], []]


def test_repeated_pairs_weigh_into_the_core_distance():
    split_sets = [np.array([0, 1]), np.array([1, 0]), np.array([0, 2])]

    core, neighbours = sample_neighbours(TRIANGLE, split_sets, "random")

    assert core[0] == pytest.approx(10.0 / 3.0)
    assert core[1] == pytest.approx(3.0)
    assert core[2] == pytest.approx(4.0)
    assert neighbours[0].tolist() == [1, 2]


def test_median_sampling_links_to_the_middle_point():
    core, neighbours = sample_neighbours(TRIANGLE, [np.array([0, 1, 2])], "median")

    np.testing.assert_allclose(core[:3], [3.0, 4.0, 5.0])
    assert neighbours[1].tolist() == [0, 2]
    assert neighbours[0].tolist() == [1]


def test_random_sampling_closes_the_cycle():
    core, _ = sample_neighbours(TRIANGLE, [np.array([2, 0, 1])], "random")

    np.testing.assert_allclose(core[:3], [3.5, 4.0, 4.5])


def test_ordering_is_a_permutation_with_unbounded_epsilon(two_blobs):
    profile = _fast_order(two_blobs, seed=4)

    assert sorted(profile.order.tolist()) == list(range(len(two_blobs)))
    assert math.isinf(profile.epsilon)
    assert math.isinf(profile.reachability_profile()[0])


def test_same_seed_gives_the_same_ordering(two_blobs):
    assert _fast_order(two_blobs, seed=5) == _fast_order(two_blobs, seed=5)


def test_reachability_is_max_of_predecessor_core_and_distance(two_blobs):
    profile = _fast_order(two_blobs, seed=6)
    core_by_point = profile.core_distance_by_point()

    for entry in profile:
        if entry.predecessor == -1:
            continue
        distance = float(np.linalg.norm(two_blobs[entry.index] - two_blobs[entry.predecessor]))
        assert entry.reachability == pytest.approx(max(core_by_point[entry.predecessor], distance))


def test_two_points():
    profile = _fast_order([[0.0, 0.0], [1.0, 0.0]], min_pts=2, seed=0)

    assert profile.order.tolist() == [0, 1]
    assert profile.reachability_profile().tolist() == [math.inf, 1.0]
    assert profile.predecessors.tolist() == [-1, 0]


@pytest.mark.parametrize("points", [np.empty((0, 2)), [[1.0, 2.0]]])
def test_fewer_than_two_points_are_never_reachable(points):
    profile = _fast_order(points, seed=0)

    assert len(profile) == len(points)
    assert np.isinf(profile.core_distance_profile()).all()


def test_should_stop_aborts(two_blobs):
    with pytest.raises(OrderingAbortedError):
        compute_fast_ordering(
            SpatialIndex.build(two_blobs),
            OpticsConfig(min_pts=5),
            FastOpticsConfig(seed=0),
            should_stop=lambda: True,
        )


def test_flat_extraction_keeps_the_blobs_apart(two_blobs):
    config = OpticsConfig(min_pts=5, extraction_mode="flat", epsilon_cut=2.0)

    result = run_fast_optics(two_blobs, config, FastOpticsConfig(seed=8))

    labels = result.labels()
    result.tree.validate()
    assert result.n_clusters >= 2
    assert not (set(labels[:40].tolist()) & set(labels[40:].tolist())) - {0}


def test_hierarchical_extraction_on_the_fast_ordering(two_blobs):
    result = run_fast_optics(two_blobs, OpticsConfig(min_pts=5), FastOpticsConfig(seed=9))

    result.tree.validate()
    assert len(result.assignments()) == len(two_blobs)
