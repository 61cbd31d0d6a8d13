"""Child profile and personal model routes."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from arousal_engine.api.schemas import PersonalModelRequest, thresholds_payload
from arousal_engine.classifier.knn import (
    FeatureDimensionError,
    build_personal_model,
    evaluate_personal_model,
)
from arousal_engine.profile import ChildProfile

router = APIRouter(tags=["personalisation"])


@router.put("/profile")
async def set_profile(profile: ChildProfile):
    """Load a child profile; thresholds are re-personalised immediately."""
    from arousal_engine.api.server import _classifier

    if _classifier is None:
        raise HTTPException(503, "Classifier not ready.")
    _classifier.set_child_profile(profile)
    baseline = profile.baseline_calibration
    return {
        "profile_id": profile.id,
        "baseline_stale": baseline.is_stale() if baseline else None,
        "thresholds": thresholds_payload(_classifier.current_thresholds()),
    }


@router.delete("/profile")
async def clear_profile():
    from arousal_engine.api.server import _classifier

    if _classifier is None:
        raise HTTPException(503, "Classifier not ready.")
    _classifier.set_child_profile(None)
    return {"cleared": True}


@router.put("/personal-model")
async def load_personal_model(req: PersonalModelRequest):
    """Train a k-NN model from labelled clips and switch to it.

    The running model is only replaced once training and validation both
    succeed.
    """
    from arousal_engine.api.server import _classifier

    if _classifier is None:
        raise HTTPException(503, "Classifier not ready.")
    try:
        model = build_personal_model(req.examples, k=req.k)
        accuracy = evaluate_personal_model(model, req.validation) if req.validation else None
        _classifier.set_personal_model(model)
    except FeatureDimensionError as exc:
        raise HTTPException(422, str(exc)) from exc
    return {
        "loaded": True,
        "examples": len(model.training_data),
        "dimension": model.feature_dimension,
        "k": model.k,
        "validation_accuracy": accuracy,
    }


@router.delete("/personal-model")
async def clear_personal_model():
    from arousal_engine.api.server import _classifier

    if _classifier is None:
        raise HTTPException(503, "Classifier not ready.")
    _classifier.clear_personal_model()
    return {"cleared": True}
