"""Shared Pydantic models used across the engine.

Feature records are produced fresh by the (external) feature adapters for
every classification call and are never mutated afterwards.  Each record
knows how to turn its own sub-features into a scalar arousal contribution.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# ── Enums ─────────────────────────────────────────────────────


class ArousalBand(str, Enum):
    """Five ordered arousal bands, from under-arousal through crisis."""

    SHUTDOWN = "shutdown"
    GREEN = "green"
    YELLOW = "yellow"
    ORANGE = "orange"
    RED = "red"

    @property
    def rank(self) -> int:
        return _BAND_ORDER.index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ArousalBand):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, ArousalBand):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, ArousalBand):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, ArousalBand):
            return NotImplemented
        return self.rank >= other.rank

    @property
    def display_name(self) -> str:
        return _BAND_DISPLAY[self][0]

    @property
    def description(self) -> str:
        return _BAND_DISPLAY[self][1]

    @property
    def coaching_focus(self) -> str:
        """Coaching emphasis a caregiver should adopt in this band."""
        return _BAND_DISPLAY[self][2]


_BAND_ORDER = [
    ArousalBand.SHUTDOWN,
    ArousalBand.GREEN,
    ArousalBand.YELLOW,
    ArousalBand.ORANGE,
    ArousalBand.RED,
]

_BAND_DISPLAY = {
    ArousalBand.SHUTDOWN: (
        "Shutdown",
        "Under-aroused, withdrawn, low energy",
        "Alerting and engagement",
    ),
    ArousalBand.GREEN: (
        "Green (Calm)",
        "Regulated, calm, ready to learn",
        "Maintenance and prevention",
    ),
    ArousalBand.YELLOW: (
        "Yellow (Alert)",
        "Elevated arousal, early warning signs",
        "Early intervention and de-escalation",
    ),
    ArousalBand.ORANGE: (
        "Orange (High)",
        "High arousal, needs immediate support",
        "Immediate calming and regulation",
    ),
    ArousalBand.RED: (
        "Red (Crisis)",
        "Crisis state, safety is priority",
        "Safety and crisis management",
    ),
}


class ArousalState(str, Enum):
    """Training labels used by personal (k-NN) models."""

    CALM = "calm"
    PLAYFUL = "playful"
    UPSET = "upset"
    ANGRY = "angry"
    MELTDOWN = "meltdown"


# ── Modality feature records ─────────────────────────────────

_UNIT = dict(ge=0.0, le=1.0)


class PoseFeatures(BaseModel):
    """Body-pose features for one frame."""

    model_config = ConfigDict(frozen=True)

    movement_intensity: float = Field(..., **_UNIT, description="Higher = more movement.")
    body_tension: float = Field(..., **_UNIT, description="Higher = more tense.")
    posture_openness: float = Field(..., **_UNIT, description="Higher = more open / relaxed.")
    keypoint_confidence: float = Field(..., **_UNIT, description="Mean keypoint detection confidence.")

    def arousal_contribution(self) -> float:
        # Closed posture reads as higher arousal, hence the inversion.
        arousal = (
            self.movement_intensity * 0.4
            + self.body_tension * 0.4
            + (1.0 - self.posture_openness) * 0.2
        )
        return max(0.0, min(1.0, arousal))


class FacialFeatures(BaseModel):
    """Facial-expression features for one frame."""

    model_config = ConfigDict(frozen=True)

    expression_intensity: float = Field(..., **_UNIT)
    mouth_openness: float = Field(..., **_UNIT)
    eye_wideness: float = Field(..., **_UNIT)
    brow_raised: bool = False
    confidence: float = Field(..., **_UNIT, description="Face detection confidence.")

    def arousal_contribution(self) -> float:
        arousal = self.expression_intensity * 0.5
        if self.eye_wideness > 0.6:
            arousal += 0.2
        if self.brow_raised:
            arousal += 0.2
        if self.mouth_openness > 0.5:
            arousal += 0.1
        return min(arousal, 1.0)


class VocalFeatures(BaseModel):
    """Vocal-affect features for one audio buffer.

    ``pitch`` is the fundamental frequency in Hz; every other field is a
    normalised 0-1 value.
    """

    model_config = ConfigDict(frozen=True)

    volume: float = Field(..., **_UNIT, description="RMS volume.")
    pitch: float = Field(..., ge=0.0, description="Fundamental frequency (Hz).")
    energy: float = Field(..., **_UNIT)
    speech_rate: float = Field(..., **_UNIT)
    voice_quality: float = Field(..., **_UNIT, description="0 = harsh, 1 = smooth.")

    def arousal_contribution(self) -> float:
        arousal = (
            self.volume * 0.3
            + self.energy * 0.3
            + self.speech_rate * 0.2
            + (1.0 - self.voice_quality) * 0.2
        )
        return max(0.0, min(1.0, arousal))
