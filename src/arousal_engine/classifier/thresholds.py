"""Threshold personalisation — baseline- and diagnosis-aware band boundaries.

The default boundaries are shifted towards a child's calibrated calm-state
arousal and scaled by diagnosis multipliers.  The orange (crisis) boundary
is never personalised: it stays at the default for every child, so the red
band can never become harder to reach.
"""

from __future__ import annotations

import structlog

from arousal_engine.classifier.models import DEFAULT_THRESHOLDS, ArousalThresholds
from arousal_engine.profile import BaselineCalibration, DiagnosisThresholdAdjustments

logger = structlog.get_logger(__name__)

# ── Constants ─────────────────────────────────────────────────

# Baseline arousal blend
_MOVEMENT_WEIGHT = 0.7
_VOCAL_WEIGHT = 0.3

# Reference ranges for a typical child's calm voice
_PITCH_RANGE_HZ = (200.0, 300.0)
_VOLUME_RANGE_DB = (45.0, 65.0)

# Maximum shift applied from a baseline, in score units
_MAX_BASELINE_OFFSET = 0.15

# Floors that keep personalised bands from collapsing
_SHUTDOWN_FLOOR = 0.10
_GREEN_FLOOR = 0.30
_YELLOW_FLOOR = 0.50


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _normalise(value: float, bounds: tuple[float, float]) -> float:
    lo, hi = bounds
    return _clamp((value - lo) / (hi - lo), 0.0, 1.0)


def baseline_arousal_score(baseline: BaselineCalibration) -> float:
    """Express a calm-state calibration as an equivalent 0-1 arousal score."""
    movement = baseline.movement_baseline.average_movement_energy
    pitch = _normalise(baseline.vocal_baseline.average_pitch, _PITCH_RANGE_HZ)
    volume = _normalise(baseline.vocal_baseline.average_volume, _VOLUME_RANGE_DB)
    vocal = (pitch + volume) / 2.0
    return movement * _MOVEMENT_WEIGHT + vocal * _VOCAL_WEIGHT


def baseline_offset(
    baseline: BaselineCalibration,
    default: ArousalThresholds = DEFAULT_THRESHOLDS,
) -> float:
    """Clamped distance between the baseline and the default green centre."""
    green_centre = (default.shutdown_threshold + default.green_threshold) / 2.0
    offset = baseline_arousal_score(baseline) - green_centre
    return _clamp(offset, -_MAX_BASELINE_OFFSET, _MAX_BASELINE_OFFSET)


def compute_thresholds(
    default: ArousalThresholds = DEFAULT_THRESHOLDS,
    baseline: BaselineCalibration | None = None,
    diagnosis: DiagnosisThresholdAdjustments | None = None,
) -> ArousalThresholds:
    """Return personalised band boundaries.

    Parameters
    ----------
    default : ArousalThresholds
        Starting boundaries.
    baseline : BaselineCalibration | None
        Calm-state calibration.  Without one, only diagnosis multipliers
        are applied (to green and yellow).
    diagnosis : DiagnosisThresholdAdjustments | None
        Diagnosis-driven multipliers; neutral when ``None``.

    Returns
    -------
    ArousalThresholds
        Monotonically ordered boundaries whose ``orange_threshold`` always
        equals ``default.orange_threshold``.
    """
    adjustments = diagnosis or DiagnosisThresholdAdjustments()
    orange = default.orange_threshold

    if baseline is None:
        multiplier = adjustments.movement_threshold_multiplier
        shutdown = default.shutdown_threshold
        green = default.green_threshold * multiplier
        yellow = default.yellow_threshold * multiplier
    else:
        offset = baseline_offset(baseline, default)
        multiplier = (
            adjustments.movement_threshold_multiplier
            + adjustments.vocal_threshold_multiplier
        ) / 2.0
        shutdown = max(default.shutdown_threshold + offset, _SHUTDOWN_FLOOR)
        green = max((default.green_threshold + offset) * multiplier, _GREEN_FLOOR)
        yellow = max((default.yellow_threshold + offset) * multiplier, _YELLOW_FLOOR)

    # Keep the chain ordered and never above the crisis boundary.
    shutdown = min(shutdown, orange)
    green = _clamp(green, shutdown, orange)
    yellow = _clamp(yellow, green, orange)

    thresholds = ArousalThresholds(
        shutdown_threshold=shutdown,
        green_threshold=green,
        yellow_threshold=yellow,
        orange_threshold=orange,
    )
    logger.debug(
        "thresholds.computed",
        baseline=baseline is not None,
        multiplier=round(multiplier, 2),
        shutdown=round(shutdown, 3),
        green=round(green, 3),
        yellow=round(yellow, 3),
        orange=round(orange, 3),
    )
    return thresholds
