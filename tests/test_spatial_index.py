import math

import numpy as np
import pytest

from optics_clustering_analysis.errors import InvalidConfigurationError, InvalidInputError
from optics_clustering_analysis.spatial.spatial_index import SpatialIndex


def test_neighbours_include_self_sorted_by_distance_then_index():
    index = SpatialIndex.build([[0, 0], [1, 0], [0, 1], [3, 0]])

    neighbours, distances = index.neighbours(0, 1.0)

    assert neighbours.tolist() == [0, 1, 2]
    np.testing.assert_allclose(distances, [0.0, 1.0, 1.0])


def test_radius_is_inclusive_and_unbounded_radius_returns_all():
    index = SpatialIndex.build([[0, 0], [2, 0], [5, 0]])

    assert index.query([0, 0], 2.0) == frozenset({0, 1})
    neighbours, _ = index.neighbours(2, math.inf)
    assert neighbours.tolist() == [2, 1, 0]


def test_from_coordinates_matches_build():
    built = SpatialIndex.build([[0, 1, 2], [3, 4, 5]])
    stacked = SpatialIndex.from_coordinates([0, 3], [1, 4], [2, 5])

    np.testing.assert_array_equal(built.points, stacked.points)
    assert stacked.n_dims == 3
    assert len(stacked) == 2


def test_k_nearest_breaks_ties_by_index():
    index = SpatialIndex.build([[1, 0], [-1, 0], [0, 1], [0, 0]])

    nearest = index.k_nearest([0, 0], 3)

    assert [i for i, _ in nearest] == [3, 0, 1]
    assert nearest[1][1] == pytest.approx(1.0)


def test_nearest_neighbour_distances_skip_the_point_itself():
    index = SpatialIndex.build([[0, 0], [1, 0], [3, 0]])

    np.testing.assert_allclose(index.nearest_neighbour_distances(), [1.0, 1.0, 2.0])
    np.testing.assert_allclose(index.nearest_neighbour_distances(k=5), [3.0, 2.0, 3.0])


def test_nearest_neighbour_distances_on_a_sample():
    points = np.column_stack([np.arange(10.0) ** 2, np.zeros(10)])
    index = SpatialIndex.build(points)
    all_distances = index.nearest_neighbour_distances()

    sampled = index.nearest_neighbour_distances(samples=4, seed=11)

    drawn = np.random.default_rng(11).choice(10, size=4, replace=False)
    np.testing.assert_array_equal(sampled, all_distances[drawn])
    np.testing.assert_array_equal(sampled, index.nearest_neighbour_distances(samples=4, seed=11))


@pytest.mark.parametrize("samples", [None, 0, -3, 10, 50])
def test_nearest_neighbour_distances_without_sampling(samples):
    points = np.column_stack([np.arange(10.0) ** 2, np.zeros(10)])
    index = SpatialIndex.build(points)

    distances = index.nearest_neighbour_distances(samples=samples, seed=1)

    np.testing.assert_array_equal(distances, index.nearest_neighbour_distances())


def test_nearest_neighbour_distances_need_two_points():
    assert SpatialIndex.build([[1.0, 2.0]]).nearest_neighbour_distances().shape == (0,)


def test_bounds():
    index = SpatialIndex.build([[0, 5], [2, -1], [1, 1]])

    lower, upper = index.bounds()

    np.testing.assert_array_equal(lower, [0, -1])
    np.testing.assert_array_equal(upper, [2, 5])


def test_empty_index_answers_queries():
    index = SpatialIndex.build([])

    assert index.n_points == 0
    assert index.query([0, 0], 1.0) == frozenset()
    assert index.k_nearest([0, 0], 2) == []


def test_points_are_read_only():
    index = SpatialIndex.build([[0, 0], [1, 1]])

    with pytest.raises(ValueError):
        index.points[0, 0] = 5.0


@pytest.mark.parametrize(
    "points",
    [
        [[0.0, np.nan]],
        [[0.0, np.inf], [1.0, 1.0]],
        [1.0, 2.0, 3.0],
        [["a", "b"]],
    ],
)
def test_invalid_points_are_rejected(points):
    with pytest.raises(InvalidInputError):
        SpatialIndex.build(points)


def test_invalid_input_error_is_a_value_error():
    with pytest.raises(ValueError, match="Non-finite"):
        SpatialIndex.build([[0.0, 0.0], [np.nan, 1.0]])


def test_negative_radius_and_bad_k_are_rejected():
    index = SpatialIndex.build([[0, 0], [1, 1]])

    with pytest.raises(InvalidConfigurationError, match="Radius"):
        index.neighbours(0, -1.0)
    with pytest.raises(InvalidConfigurationError, match="k must be"):
        index.k_nearest([0, 0], 0)
    with pytest.raises(InvalidInputError, match="coordinates"):
        index.query([0, 0, 0], 1.0)
