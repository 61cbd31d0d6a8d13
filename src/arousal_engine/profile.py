"""Child profile inputs consumed by threshold personalisation.

The engine never persists any of these records: they are owned by the
profile subsystem and handed in read-only.  Two accessors are exposed as
plain functions so the classifier can depend on them without reaching into
profile internals:

- :func:`get_arousal_threshold_adjustments`
- :func:`baseline_calibration`
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Calibrations older than this are still used, but flagged as stale.
CALIBRATION_STALE_AFTER = timedelta(days=30)


# ── Diagnosis ────────────────────────────────────────────────


class Diagnosis(str, Enum):
    """Neurodivergent diagnosis families with known arousal profiles."""

    AUTISM = "autism"
    ADHD = "adhd"
    SPD = "spd"  # Sensory Processing Disorder
    MULTIPLE = "multiple"
    OTHER = "other"
    PREFER_NOT_TO_SPECIFY = "prefer_not_to_specify"


class DiagnosisThresholdAdjustments(BaseModel):
    """Multiplicative threshold adjustments keyed to a diagnosis.

    A multiplier above 1.0 means more movement (or vocal energy) is needed
    before a higher band is reached.
    """

    model_config = ConfigDict(frozen=True)

    movement_threshold_multiplier: float = Field(1.0, gt=0.0)
    vocal_threshold_multiplier: float = Field(1.0, gt=0.0)
    expression_sensitivity: float = Field(1.0, ge=0.0, le=1.0)


_DIAGNOSIS_ADJUSTMENTS: dict[Diagnosis, DiagnosisThresholdAdjustments] = {
    Diagnosis.AUTISM: DiagnosisThresholdAdjustments(
        movement_threshold_multiplier=1.5,
        vocal_threshold_multiplier=1.3,
        expression_sensitivity=0.7,
    ),
    Diagnosis.ADHD: DiagnosisThresholdAdjustments(
        movement_threshold_multiplier=2.0,
        vocal_threshold_multiplier=1.5,
        expression_sensitivity=1.0,
    ),
    Diagnosis.SPD: DiagnosisThresholdAdjustments(
        movement_threshold_multiplier=1.3,
        vocal_threshold_multiplier=1.2,
        expression_sensitivity=0.9,
    ),
}


def adjustments_for(diagnosis: Diagnosis) -> DiagnosisThresholdAdjustments:
    """Return the threshold adjustments for a diagnosis (neutral if unknown)."""
    return _DIAGNOSIS_ADJUSTMENTS.get(diagnosis, DiagnosisThresholdAdjustments())


class DiagnosisInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    primary_diagnosis: Diagnosis
    additional_diagnoses: list[Diagnosis] = Field(default_factory=list)
    professionally_diagnosed: bool = False
    notes: str | None = None

    @property
    def all_diagnoses(self) -> list[Diagnosis]:
        return [self.primary_diagnosis, *self.additional_diagnoses]

    def has_diagnosis(self, diagnosis: Diagnosis) -> bool:
        return diagnosis in self.all_diagnoses


# ── Baseline calibration ─────────────────────────────────────


class MovementBaseline(BaseModel):
    model_config = ConfigDict(frozen=True)

    average_movement_energy: float = Field(0.0, ge=0.0, le=1.0)
    common_stim_behaviors: list[str] = Field(default_factory=list)
    stim_is_regulatory: bool = False


class VocalBaseline(BaseModel):
    model_config = ConfigDict(frozen=True)

    average_pitch: float = Field(0.0, ge=0.0, description="Hz")
    average_volume: float = Field(0.0, ge=0.0, description="dB")


class ExpressionBaseline(BaseModel):
    model_config = ConfigDict(frozen=True)

    flat_affect_normal: bool = False
    neutral_expression: str | None = None


class BaselineCalibration(BaseModel):
    """Movement and vocal levels captured while the child was calm."""

    model_config = ConfigDict(frozen=True)

    calibrated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    movement_baseline: MovementBaseline = Field(default_factory=MovementBaseline)
    vocal_baseline: VocalBaseline = Field(default_factory=VocalBaseline)
    expression_baseline: ExpressionBaseline | None = None
    notes: str | None = None

    def is_stale(self, now: datetime | None = None) -> bool:
        """True when the calibration is older than 30 days."""
        now = now or datetime.now(UTC)
        return self.calibrated_at < now - CALIBRATION_STALE_AFTER


# ── Profile ───────────────────────────────────────────────────


class ChildProfile(BaseModel):
    """The subset of a child profile the classifier cares about."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    age: int = Field(..., ge=1, le=50)
    diagnosis_info: DiagnosisInfo | None = None
    baseline_calibration: BaselineCalibration | None = None

    def get_arousal_threshold_adjustments(self) -> DiagnosisThresholdAdjustments:
        if self.diagnosis_info is None:
            return DiagnosisThresholdAdjustments()
        return adjustments_for(self.diagnosis_info.primary_diagnosis)


def get_arousal_threshold_adjustments(
    profile: ChildProfile | None,
) -> DiagnosisThresholdAdjustments:
    """Diagnosis-driven adjustments for *profile* (neutral when absent)."""
    if profile is None:
        return DiagnosisThresholdAdjustments()
    return profile.get_arousal_threshold_adjustments()


def baseline_calibration(profile: ChildProfile | None) -> BaselineCalibration | None:
    """Baseline calibration for *profile*, if one was recorded."""
    if profile is None:
        return None
    return profile.baseline_calibration
