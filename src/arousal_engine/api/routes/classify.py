"""Classification, live state and history routes."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from arousal_engine.api.schemas import ClassifyRequest, classification_payload, thresholds_payload
from arousal_engine.classifier.knn import FeatureDimensionError

router = APIRouter(tags=["classification"])


@router.post("/classify")
async def classify(req: ClassifyRequest):
    """Classify one frame's features and fold the result into the live state."""
    from arousal_engine.api.server import _classifier

    if _classifier is None:
        raise HTTPException(503, "Classifier not ready.")
    try:
        result = await _classifier.classify_features(req.pose, req.facial, req.vocal, req.context)
    except FeatureDimensionError as exc:
        raise HTTPException(409, str(exc)) from exc
    return classification_payload(result)


@router.get("/state")
async def get_state():
    from arousal_engine.api.server import _classifier

    if _classifier is None:
        raise HTTPException(503, "Classifier not ready.")
    band = _classifier.current_band
    last = _classifier.last_classification_time
    snapshot = _classifier.feature_snapshot
    return {
        "current_band": band.value if band else None,
        "band_display_name": band.display_name if band else None,
        "current_confidence": _classifier.current_confidence,
        "last_classification_time": last.isoformat() if last else None,
        "strategy": _classifier.active_strategy.value,
        "feature_snapshot": snapshot.model_dump(mode="json") if snapshot else None,
    }


@router.get("/thresholds")
async def get_thresholds():
    """Band boundaries currently in effect for the loaded profile."""
    from arousal_engine.api.server import _classifier

    if _classifier is None:
        raise HTTPException(503, "Classifier not ready.")
    return thresholds_payload(_classifier.current_thresholds())


@router.get("/history")
async def get_history(count: int = Query(10, ge=1, le=100)):
    from arousal_engine.api.server import _classifier

    if _classifier is None:
        raise HTTPException(503, "Classifier not ready.")
    readings = _classifier.recent_history(count)
    return {
        "count": len(readings),
        "readings": [r.model_dump(mode="json") for r in readings],
    }


@router.delete("/history")
async def clear_history():
    from arousal_engine.api.server import _classifier

    if _classifier is None:
        raise HTTPException(503, "Classifier not ready.")
    _classifier.clear_history()
    _classifier.clear_reasoning_cache()
    return {"cleared": True}
