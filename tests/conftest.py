"""Shared pytest fixtures."""

from __future__ import annotations

import pytest
from fakes import FakeFacialAdapter, FakePoseAdapter, FakeVocalAdapter

from arousal_engine.classifier.models import ExternalReasoningContext
from arousal_engine.classifier.orchestrator import ArousalBandClassifier
from arousal_engine.models import FacialFeatures, PoseFeatures, VocalFeatures
from arousal_engine.profile import (
    BaselineCalibration,
    ChildProfile,
    Diagnosis,
    DiagnosisInfo,
    MovementBaseline,
    VocalBaseline,
)


# ── Feature records ───────────────────────────────────────────


@pytest.fixture
def calm_pose() -> PoseFeatures:
    # contribution 0.1
    return PoseFeatures(
        movement_intensity=0.1,
        body_tension=0.1,
        posture_openness=0.9,
        keypoint_confidence=1.0,
    )


@pytest.fixture
def calm_facial() -> FacialFeatures:
    # contribution 0.1
    return FacialFeatures(
        expression_intensity=0.2,
        mouth_openness=0.1,
        eye_wideness=0.3,
        brow_raised=False,
        confidence=1.0,
    )


@pytest.fixture
def calm_vocal() -> VocalFeatures:
    # contribution 0.1
    return VocalFeatures(
        volume=0.1,
        pitch=220.0,
        energy=0.1,
        speech_rate=0.1,
        voice_quality=0.9,
    )


@pytest.fixture
def agitated_pose() -> PoseFeatures:
    # contribution 0.9
    return PoseFeatures(
        movement_intensity=0.9,
        body_tension=0.9,
        posture_openness=0.1,
        keypoint_confidence=0.9,
    )


@pytest.fixture
def agitated_facial() -> FacialFeatures:
    # contribution 0.9
    return FacialFeatures(
        expression_intensity=0.8,
        mouth_openness=0.7,
        eye_wideness=0.8,
        brow_raised=True,
        confidence=0.9,
    )


@pytest.fixture
def agitated_vocal() -> VocalFeatures:
    # contribution 0.86
    return VocalFeatures(
        volume=0.9,
        pitch=350.0,
        energy=0.9,
        speech_rate=0.8,
        voice_quality=0.2,
    )


# ── Profiles ──────────────────────────────────────────────────


@pytest.fixture
def plain_profile() -> ChildProfile:
    return ChildProfile(name="Sam", age=7)


@pytest.fixture
def autism_profile() -> ChildProfile:
    return ChildProfile(
        name="Alex",
        age=6,
        diagnosis_info=DiagnosisInfo(primary_diagnosis=Diagnosis.AUTISM),
    )


@pytest.fixture
def high_baseline() -> BaselineCalibration:
    # Arousal-equivalent 0.965: full vocal range plus 0.95 movement.
    return BaselineCalibration(
        movement_baseline=MovementBaseline(average_movement_energy=0.95),
        vocal_baseline=VocalBaseline(average_pitch=300.0, average_volume=65.0),
    )


@pytest.fixture
def low_baseline() -> BaselineCalibration:
    return BaselineCalibration(
        movement_baseline=MovementBaseline(average_movement_energy=0.0),
        vocal_baseline=VocalBaseline(average_pitch=150.0, average_volume=30.0),
    )


@pytest.fixture
def context() -> ExternalReasoningContext:
    return ExternalReasoningContext(
        detected_behaviors=["hand flapping", "covering ears"],
        parent_stress="moderate",
    )


@pytest.fixture
def calm_classifier(calm_pose, calm_facial, calm_vocal) -> ArousalBandClassifier:
    return ArousalBandClassifier(
        FakePoseAdapter(calm_pose),
        FakeFacialAdapter(calm_facial),
        FakeVocalAdapter(calm_vocal),
    )
