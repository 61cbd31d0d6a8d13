"""Signal fusion — combine per-modality evidence into one band.

Two paths are available:

1. **Personal model**: when a k-NN model trained on this child is loaded,
   a fixed-order feature vector (absent modalities zero-filled) is
   classified and the predicted training label is mapped onto a band.
   Confidence is a fixed constant rather than a neighbour-agreement
   statistic; this is a known simplification.
2. **Rule-based**: a confidence-weighted average of the modality
   contributions, mapped onto the (personalised) thresholds.

Both paths report the per-modality contributions for inspection.
"""

from __future__ import annotations

from typing import NamedTuple

import structlog

from arousal_engine.classifier.confidence import confidence as estimate_confidence
from arousal_engine.classifier.knn import PersonalModel
from arousal_engine.classifier.models import (
    DEFAULT_THRESHOLDS,
    ArousalThresholds,
    ClassificationStrategy,
    ModalityContributions,
)
from arousal_engine.models import (
    ArousalBand,
    ArousalState,
    FacialFeatures,
    PoseFeatures,
    VocalFeatures,
)

logger = structlog.get_logger(__name__)

# ── Constants ─────────────────────────────────────────────────

# Body movement is the strongest indicator; vocal is least reliable
# without a trained model, so its weight is not scaled by confidence.
POSE_WEIGHT = 0.50
FACIAL_WEIGHT = 0.40
VOCAL_WEIGHT = 0.10

NEUTRAL_SCORE = 0.5
PERSONAL_MODEL_CONFIDENCE = 0.85

POSE_VECTOR_SIZE = 5
FACIAL_VECTOR_SIZE = 6
VOCAL_VECTOR_SIZE = 5
FEATURE_VECTOR_SIZE = POSE_VECTOR_SIZE + FACIAL_VECTOR_SIZE + VOCAL_VECTOR_SIZE

STATE_TO_BAND: dict[ArousalState, ArousalBand] = {
    ArousalState.CALM: ArousalBand.GREEN,
    ArousalState.PLAYFUL: ArousalBand.YELLOW,
    ArousalState.UPSET: ArousalBand.YELLOW,
    ArousalState.ANGRY: ArousalBand.ORANGE,
    ArousalState.MELTDOWN: ArousalBand.RED,
}


class FusionResult(NamedTuple):
    band: ArousalBand
    confidence: float
    contributions: ModalityContributions
    strategy: ClassificationStrategy
    score: float | None = None  # rule-based path only


# ── Feature vector ────────────────────────────────────────────


def build_feature_vector(
    pose: PoseFeatures | None,
    facial: FacialFeatures | None,
    vocal: VocalFeatures | None,
) -> list[float]:
    """Fixed-order vector used by personal models.

    Layout: pose (contribution, keypoint confidence, movement, tension,
    openness), facial (contribution, confidence, intensity, mouth, eyes,
    brow), vocal (volume, pitch, energy, rate, quality).
    """
    vector: list[float] = []

    if pose is not None:
        vector.extend([
            pose.arousal_contribution(),
            pose.keypoint_confidence,
            pose.movement_intensity,
            pose.body_tension,
            pose.posture_openness,
        ])
    else:
        vector.extend([0.0] * POSE_VECTOR_SIZE)

    if facial is not None:
        vector.extend([
            facial.arousal_contribution(),
            facial.confidence,
            facial.expression_intensity,
            facial.mouth_openness,
            facial.eye_wideness,
            1.0 if facial.brow_raised else 0.0,
        ])
    else:
        vector.extend([0.0] * FACIAL_VECTOR_SIZE)

    if vocal is not None:
        vector.extend([
            vocal.volume,
            vocal.pitch,
            vocal.energy,
            vocal.speech_rate,
            vocal.voice_quality,
        ])
    else:
        vector.extend([0.0] * VOCAL_VECTOR_SIZE)

    return vector


# ── Paths ─────────────────────────────────────────────────────


def fuse_with_personal_model(
    model: PersonalModel,
    pose: PoseFeatures | None,
    facial: FacialFeatures | None,
    vocal: VocalFeatures | None,
) -> FusionResult:
    state = model.predict(build_feature_vector(pose, facial, vocal))
    band = STATE_TO_BAND[state]
    return FusionResult(
        band=band,
        confidence=PERSONAL_MODEL_CONFIDENCE,
        contributions=ModalityContributions.from_features(pose, facial, vocal),
        strategy=ClassificationStrategy.PERSONAL_MODEL,
    )


def fused_score(
    pose: PoseFeatures | None,
    facial: FacialFeatures | None,
    vocal: VocalFeatures | None,
) -> tuple[float, float, int]:
    """Weighted arousal score.

    Returns (score, total_weight, modality_count).  With no usable weight
    the neutral score 0.5 is returned.
    """
    components: list[float] = []
    weights: list[float] = []

    if pose is not None:
        components.append(pose.arousal_contribution())
        weights.append(POSE_WEIGHT * pose.keypoint_confidence)

    if facial is not None:
        components.append(facial.arousal_contribution())
        weights.append(FACIAL_WEIGHT * facial.confidence)

    if vocal is not None:
        components.append(vocal.arousal_contribution())
        weights.append(VOCAL_WEIGHT)

    total_weight = sum(weights)
    if total_weight <= 0:
        return NEUTRAL_SCORE, total_weight, len(components)

    score = sum(c * w for c, w in zip(components, weights)) / total_weight
    return max(0.0, min(1.0, score)), total_weight, len(components)


def fuse_rule_based(
    pose: PoseFeatures | None,
    facial: FacialFeatures | None,
    vocal: VocalFeatures | None,
    thresholds: ArousalThresholds = DEFAULT_THRESHOLDS,
) -> FusionResult:
    score, total_weight, count = fused_score(pose, facial, vocal)
    return FusionResult(
        band=thresholds.band_for(score),
        confidence=estimate_confidence(score, total_weight, count),
        contributions=ModalityContributions.from_features(pose, facial, vocal),
        strategy=ClassificationStrategy.RULE_BASED,
        score=score,
    )


def fuse(
    pose: PoseFeatures | None,
    facial: FacialFeatures | None,
    vocal: VocalFeatures | None,
    personal_model: PersonalModel | None = None,
    thresholds: ArousalThresholds = DEFAULT_THRESHOLDS,
) -> FusionResult:
    """Fuse the available modalities into a band and confidence.

    Absent modalities are never an error.  A loaded *personal_model*
    overrides the rule-based path entirely.
    """
    if personal_model is not None:
        result = fuse_with_personal_model(personal_model, pose, facial, vocal)
    else:
        result = fuse_rule_based(pose, facial, vocal, thresholds)

    logger.debug(
        "fusion.complete",
        strategy=result.strategy.value,
        band=result.band.value,
        confidence=round(result.confidence, 3),
        score=round(result.score, 3) if result.score is not None else None,
    )
    return result
