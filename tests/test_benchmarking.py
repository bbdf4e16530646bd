import numpy as np
import pytest

from optics_clustering_analysis.benchmarking.metrics import calculate_ari_nmi_purity
from optics_clustering_analysis.benchmarking.reference import run_sklearn_optics
from optics_clustering_analysis.errors import InvalidInputError
from optics_clustering_analysis.optics.parameters import OpticsConfig
from optics_clustering_analysis.pipeline import run_optics


def test_perfect_clustering_scores_one():
    labels = np.array([1, 1, 2, 2])

    assert calculate_ari_nmi_purity(labels, np.array([0, 0, 1, 1])) == pytest.approx(
        (1.0, 1.0, 1.0)
    )


def test_noise_handling():
    labels = np.array([1, 1, 0, 0])
    truth = np.array(["a", "a", "b", "b"])

    ari_singletons, _, _ = calculate_ari_nmi_purity(labels, truth)
    ari_grouped, _, _ = calculate_ari_nmi_purity(labels, truth, noise_as_cluster=True)

    assert ari_grouped == pytest.approx(1.0)
    assert ari_singletons < 1.0


def test_metric_inputs_must_align():
    with pytest.raises(InvalidInputError, match="differ in shape"):
        calculate_ari_nmi_purity(np.array([1, 2]), np.array([1]))
    assert calculate_ari_nmi_purity(np.array([]), np.array([])) == (0.0, 0.0, 0.0)


def test_ordering_matches_scikit_learn(two_blobs):
    config = OpticsConfig(min_pts=5, epsilon=3.0)

    ours = run_optics(two_blobs, config)
    reference = run_sklearn_optics(two_blobs, config)

    np.testing.assert_allclose(ours.profile.core_distance_by_point(), reference.core_distances)
    np.testing.assert_array_equal(ours.profile.order, reference.ordering)
    np.testing.assert_allclose(ours.profile.reachability_by_point(), reference.reachability)


def test_flat_extraction_agrees_with_scikit_learn(two_blobs):
    config = OpticsConfig(min_pts=5, epsilon=3.0, extraction_mode="flat", epsilon_cut=1.0)

    ours = run_optics(two_blobs, config)
    reference = run_sklearn_optics(two_blobs, config)

    ari, _, _ = calculate_ari_nmi_purity(ours.labels(), reference.labels, noise_as_cluster=True)
    assert ari == pytest.approx(1.0)
    assert reference.n_clusters == ours.n_clusters


def test_reference_run_on_tiny_input():
    result = run_sklearn_optics([[0.0, 0.0]], OpticsConfig(min_pts=2))

    assert result.labels.tolist() == [0]
    assert result.n_clusters == 0
