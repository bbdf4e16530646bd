"""Benchmarking helpers: clustering metrics and reference runs."""

from .metrics import calculate_ari_nmi_purity
from .reference import ReferenceRunResult, run_sklearn_optics

__all__ = ["calculate_ari_nmi_purity", "ReferenceRunResult", "run_sklearn_optics"]
