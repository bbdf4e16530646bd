"""Metric helpers for comparing a clustering with known labels.

Contains helpers for computing clustering metrics (ARI, NMI, Purity).
"""

from __future__ import annotations

import numpy as np
from sklearn.metrics import (
    adjusted_rand_score,
    homogeneity_score,
    normalized_mutual_info_score,
)

from .. import config
from ..errors import InvalidInputError


def _noise_as_singletons(labels: np.ndarray) -> np.ndarray:
    """Give every noise point its own label so noise never forms a cluster."""
    labels = np.array(labels, dtype=np.int64)
    noise = labels == config.NOISE
    start = labels.max() + 1 if labels.size else 1
    labels[noise] = np.arange(start, start + int(noise.sum()))
    return labels


def calculate_ari_nmi_purity(
    labels: np.ndarray,
    true_labels: np.ndarray,
    noise_as_cluster: bool = False,
) -> tuple[float, float, float]:
    """Calculate clustering metrics (ARI, NMI, Purity).

    Parameters
    ----------
    labels
        Predicted cluster id per point, ``0`` for noise.
    true_labels
        Ground-truth label per point.
    noise_as_cluster
        Treat all noise points as one cluster instead of singletons.

    Returns
    -------
    tuple[float, float, float]
        Adjusted Rand index, normalised mutual information and purity
        (homogeneity). All zeros for an empty labelling.
    """
    labels = np.asarray(labels)
    true_labels = np.asarray(true_labels)
    if labels.shape != true_labels.shape:
        raise InvalidInputError(
            f"labels and true_labels differ in shape: {labels.shape} vs {true_labels.shape}."
        )
    if labels.size == 0:
        return 0.0, 0.0, 0.0
    predicted = labels if noise_as_cluster else _noise_as_singletons(labels)

    ari = adjusted_rand_score(true_labels, predicted)
    nmi = normalized_mutual_info_score(true_labels, predicted)
    purity = homogeneity_score(true_labels, predicted)
    return float(ari), float(nmi), float(purity)


__all__ = ["calculate_ari_nmi_purity"]
