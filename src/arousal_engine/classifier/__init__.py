"""Arousal band classification — fusion, personalisation and smoothing.

Architecture
------------
1. **Threshold personalisation** (`thresholds.py`)
   - Baseline offset (movement 70 %, vocal 30 %) clamped to ±0.15
   - Diagnosis multipliers on the green / yellow boundaries
   - The orange (crisis) boundary is never moved

2. **Signal fusion** (`fusion.py`, `knn.py`)
   - Rule-based: confidence-weighted average of modality contributions
   - Personal model: k-NN over a fixed 16-value feature vector

3. **Confidence** (`confidence.py`)
   - Modality coverage, evidence weight and distance from the nearest
     band boundary, bounded to [0.1, 1.0]

4. **Temporal smoothing** (`smoothing.py`)
   - Recency- and confidence-weighted vote over the last five readings

5. **Orchestration** (`orchestrator.py`)
   - Concurrent extraction, optional external reasoning with fallback,
     and the live "current band" state

Limitations
-----------
Outputs are best-effort, confidence-annotated estimates for coaching.
They are never a diagnosis.
"""

from arousal_engine.classifier.knn import (
    FeatureDimensionError,
    PersonalModel,
    TrainingExample,
    build_personal_model,
    evaluate_personal_model,
)
from arousal_engine.classifier.models import (
    DEFAULT_THRESHOLDS,
    ArousalBandClassification,
    ArousalReading,
    ArousalThresholds,
    ClassificationStrategy,
    EnvironmentContext,
    ExternalReasoningContext,
    FeatureSnapshot,
    ModalityContributions,
    ReasoningRequest,
    SessionContext,
)
from arousal_engine.classifier.orchestrator import ArousalBandClassifier, create_classifier

__all__ = [
    "DEFAULT_THRESHOLDS",
    "ArousalBandClassification",
    "ArousalBandClassifier",
    "ArousalReading",
    "ArousalThresholds",
    "ClassificationStrategy",
    "EnvironmentContext",
    "ExternalReasoningContext",
    "FeatureDimensionError",
    "FeatureSnapshot",
    "ModalityContributions",
    "PersonalModel",
    "ReasoningRequest",
    "SessionContext",
    "TrainingExample",
    "build_personal_model",
    "create_classifier",
    "evaluate_personal_model",
]
