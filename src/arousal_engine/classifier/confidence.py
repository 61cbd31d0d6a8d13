"""Confidence estimation for the rule-based fusion path."""

from __future__ import annotations

# Fixed reference boundaries; deliberately not the personalised ones.
DECISION_BOUNDARIES = (0.20, 0.45, 0.65, 0.85)

MODALITY_COUNT = 3
MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 1.0

_COVERAGE_WEIGHT = 0.4
_SIGNAL_WEIGHT = 0.3
_BOUNDARY_WEIGHT = 0.3


def confidence(score: float, total_weight: float, modality_count: int) -> float:
    """Confidence in a fused score, in ``[0.1, 1.0]``.

    Combines modality coverage, total signal weight and the distance from
    the nearest decision boundary.  Never returns zero: a sparse result is
    still emitted and the caller is expected to discount it.
    """
    coverage = modality_count / MODALITY_COUNT
    signal = min(total_weight, 1.0)
    nearest = min(abs(score - b) for b in DECISION_BOUNDARIES)
    boundary = min(nearest * 2.0, 1.0)

    combined = (
        coverage * _COVERAGE_WEIGHT
        + signal * _SIGNAL_WEIGHT
        + boundary * _BOUNDARY_WEIGHT
    )
    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, combined))
