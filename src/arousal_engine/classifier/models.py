"""Pydantic models for the classification subsystem.

These models represent:
- Band boundaries (default and personalised)
- Per-modality contribution breakdowns
- Smoothing-window readings
- The final classification result
- Context and request payloads for external reasoning
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from arousal_engine.models import ArousalBand, FacialFeatures, PoseFeatures, VocalFeatures
from arousal_engine.profile import ChildProfile


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ── Enums ─────────────────────────────────────────────────────


class ClassificationStrategy(str, Enum):
    """Which strategy produced the raw (pre-smoothing) band."""

    RULE_BASED = "rule_based"
    PERSONAL_MODEL = "personal_model"
    EXTERNAL_REASONING = "external_reasoning"


# ── Thresholds ────────────────────────────────────────────────


class ArousalThresholds(BaseModel):
    """Upper (exclusive) boundaries of the four lower bands.

    Scores at or above ``orange_threshold`` are red.
    """

    model_config = ConfigDict(frozen=True)

    shutdown_threshold: float = Field(0.20, ge=0.0, le=1.0)
    green_threshold: float = Field(0.45, ge=0.0, le=1.0)
    yellow_threshold: float = Field(0.65, ge=0.0, le=1.0)
    orange_threshold: float = Field(0.85, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_monotonic(self) -> ArousalThresholds:
        if not (
            self.shutdown_threshold
            <= self.green_threshold
            <= self.yellow_threshold
            <= self.orange_threshold
        ):
            raise ValueError(
                "thresholds must be non-decreasing: "
                f"{self.shutdown_threshold} <= {self.green_threshold} <= "
                f"{self.yellow_threshold} <= {self.orange_threshold}"
            )
        return self

    def band_for(self, score: float) -> ArousalBand:
        """Map a 0-1 arousal score to a band using half-open intervals."""
        if score < self.shutdown_threshold:
            return ArousalBand.SHUTDOWN
        if score < self.green_threshold:
            return ArousalBand.GREEN
        if score < self.yellow_threshold:
            return ArousalBand.YELLOW
        if score < self.orange_threshold:
            return ArousalBand.ORANGE
        return ArousalBand.RED

    def describe(self) -> str:
        return (
            "Arousal thresholds: "
            f"shutdown < {self.shutdown_threshold:.2f}, "
            f"green < {self.green_threshold:.2f}, "
            f"yellow < {self.yellow_threshold:.2f}, "
            f"orange < {self.orange_threshold:.2f}, "
            f"red >= {self.orange_threshold:.2f}"
        )


DEFAULT_THRESHOLDS = ArousalThresholds()


# ── Contributions & readings ─────────────────────────────────


class ModalityContributions(BaseModel):
    """Per-modality arousal contribution (0.0 for an absent modality)."""

    model_config = ConfigDict(frozen=True)

    pose: float = Field(0.0, ge=0.0, le=1.0)
    facial: float = Field(0.0, ge=0.0, le=1.0)
    vocal: float = Field(0.0, ge=0.0, le=1.0)

    @classmethod
    def from_features(
        cls,
        pose: PoseFeatures | None,
        facial: FacialFeatures | None,
        vocal: VocalFeatures | None,
    ) -> ModalityContributions:
        return cls(
            pose=pose.arousal_contribution() if pose is not None else 0.0,
            facial=facial.arousal_contribution() if facial is not None else 0.0,
            vocal=vocal.arousal_contribution() if vocal is not None else 0.0,
        )

    @property
    def dominant_modality(self) -> str:
        if self.pose > self.facial and self.pose > self.vocal:
            return "pose"
        if self.facial > self.vocal:
            return "facial"
        return "vocal"


class ArousalReading(BaseModel):
    """One entry in the smoothing window."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    band: ArousalBand
    confidence: float = Field(..., ge=0.0, le=1.0)
    timestamp: datetime = Field(default_factory=_utcnow)


class FeatureSnapshot(BaseModel):
    """What the fusion step saw on its latest call, for transparency views."""

    model_config = ConfigDict(frozen=True)

    pose_available: bool = False
    movement_intensity: float | None = None
    body_tension: float | None = None
    posture_openness: float | None = None
    pose_confidence: float | None = None

    facial_available: bool = False
    expression_intensity: float | None = None
    mouth_openness: float | None = None
    eye_wideness: float | None = None
    brow_raised: bool | None = None
    facial_confidence: float | None = None

    vocal_available: bool = False
    volume: float | None = None
    pitch: float | None = None
    energy: float | None = None
    speech_rate: float | None = None

    predicted_band: ArousalBand
    overall_confidence: float
    using_personal_model: bool = False

    @classmethod
    def capture(
        cls,
        pose: PoseFeatures | None,
        facial: FacialFeatures | None,
        vocal: VocalFeatures | None,
        band: ArousalBand,
        confidence: float,
        using_personal_model: bool,
    ) -> FeatureSnapshot:
        return cls(
            pose_available=pose is not None,
            movement_intensity=pose.movement_intensity if pose else None,
            body_tension=pose.body_tension if pose else None,
            posture_openness=pose.posture_openness if pose else None,
            pose_confidence=pose.keypoint_confidence if pose else None,
            facial_available=facial is not None,
            expression_intensity=facial.expression_intensity if facial else None,
            mouth_openness=facial.mouth_openness if facial else None,
            eye_wideness=facial.eye_wideness if facial else None,
            brow_raised=facial.brow_raised if facial else None,
            facial_confidence=facial.confidence if facial else None,
            vocal_available=vocal is not None,
            volume=vocal.volume if vocal else None,
            pitch=vocal.pitch if vocal else None,
            energy=vocal.energy if vocal else None,
            speech_rate=vocal.speech_rate if vocal else None,
            predicted_band=band,
            overall_confidence=confidence,
            using_personal_model=using_personal_model,
        )


# ── Output ────────────────────────────────────────────────────


class ArousalBandClassification(BaseModel):
    """Final classification returned to the caller.

    The engine does not keep these beyond its smoothing window; the caller
    owns any longer history.
    """

    model_config = ConfigDict(frozen=True)

    arousal_band: ArousalBand
    confidence: float = Field(..., ge=0.0, le=1.0)
    contributions: ModalityContributions = Field(default_factory=ModalityContributions)
    timestamp: datetime = Field(default_factory=_utcnow)
    strategy: ClassificationStrategy = ClassificationStrategy.RULE_BASED

    @property
    def is_high_confidence(self) -> bool:
        return self.confidence >= 0.7

    @property
    def needs_more_data(self) -> bool:
        return self.confidence < 0.5


# ── External reasoning ───────────────────────────────────────


class EnvironmentContext(BaseModel):
    """Observed surroundings, expressed as free-form level labels."""

    lighting_level: str | None = None
    visual_complexity: str | None = None
    noise_level: str | None = None
    noise_type: str | None = None
    crowd_density: str | None = None


class SessionContext(BaseModel):
    duration_minutes: int = 0
    behavior_summary: str = ""
    arousal_timeline: list[ArousalBand] = Field(default_factory=list)
    patterns: list[str] = Field(default_factory=list)
    co_regulation_events: list[str] = Field(default_factory=list)


class ExternalReasoningContext(BaseModel):
    """Behavioural and environmental context supplied alongside a frame.

    External reasoning is only attempted when this context is present.
    """

    detected_behaviors: list[str] = Field(default_factory=list)
    environment: EnvironmentContext = Field(default_factory=EnvironmentContext)
    parent_stress: str | None = None
    session_context: SessionContext | None = None


class ReasoningRequest(BaseModel):
    """Everything an external reasoning service receives for one decision."""

    profile: ChildProfile
    pose: PoseFeatures | None = None
    facial: FacialFeatures | None = None
    vocal: VocalFeatures | None = None
    behaviors: list[str] = Field(default_factory=list)
    environment: EnvironmentContext = Field(default_factory=EnvironmentContext)
    parent_stress: str | None = None
    session_context: SessionContext | None = None
    timestamp: datetime = Field(default_factory=_utcnow)
