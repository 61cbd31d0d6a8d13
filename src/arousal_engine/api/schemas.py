"""Request / response models shared across API route modules."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from arousal_engine.classifier.knn import DEFAULT_K, TrainingExample
from arousal_engine.classifier.models import (
    ArousalBandClassification,
    ArousalThresholds,
    ExternalReasoningContext,
)
from arousal_engine.models import FacialFeatures, PoseFeatures, VocalFeatures


class ClassifyRequest(BaseModel):
    """Pre-extracted features for one frame; any modality may be omitted."""
    pose: PoseFeatures | None = None
    facial: FacialFeatures | None = None
    vocal: VocalFeatures | None = None
    context: ExternalReasoningContext | None = None


class PersonalModelRequest(BaseModel):
    """Raw (un-normalised) labelled clips to train a personal model from."""
    examples: list[TrainingExample] = Field(..., min_length=1)
    k: int = Field(DEFAULT_K, ge=1)
    validation: list[TrainingExample] = Field(default_factory=list)


def classification_payload(result: ArousalBandClassification) -> dict[str, Any]:
    """Serialise a classification with its band presentation fields."""
    band = result.arousal_band
    return {
        **result.model_dump(mode="json"),
        "band_display_name": band.display_name,
        "coaching_focus": band.coaching_focus,
        "is_high_confidence": result.is_high_confidence,
        "needs_more_data": result.needs_more_data,
        "dominant_modality": result.contributions.dominant_modality,
    }


def thresholds_payload(thresholds: ArousalThresholds) -> dict[str, Any]:
    return {**thresholds.model_dump(), "description": thresholds.describe()}
