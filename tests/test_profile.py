"""Tests for band, feature and profile models."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from arousal_engine.classifier.models import ArousalBandClassification, ModalityContributions
from arousal_engine.models import ArousalBand, FacialFeatures, PoseFeatures
from arousal_engine.profile import (
    BaselineCalibration,
    ChildProfile,
    Diagnosis,
    DiagnosisInfo,
    adjustments_for,
    baseline_calibration,
    get_arousal_threshold_adjustments,
)


# ── Bands ─────────────────────────────────────────────────────


class TestArousalBand:
    def test_total_order(self):
        assert (
            ArousalBand.SHUTDOWN
            < ArousalBand.GREEN
            < ArousalBand.YELLOW
            < ArousalBand.ORANGE
            < ArousalBand.RED
        )
        assert max(ArousalBand.GREEN, ArousalBand.ORANGE) == ArousalBand.ORANGE
        assert ArousalBand.RED >= ArousalBand.RED

    def test_presentation(self):
        assert ArousalBand.RED.display_name == "Red (Crisis)"
        assert ArousalBand.GREEN.coaching_focus == "Maintenance and prevention"
        assert ArousalBand.SHUTDOWN.description


# ── Feature records ───────────────────────────────────────────


class TestFeatures:
    def test_facial_bonuses_capped(self):
        facial = FacialFeatures(
            expression_intensity=1.0,
            mouth_openness=1.0,
            eye_wideness=1.0,
            brow_raised=True,
            confidence=1.0,
        )
        assert facial.arousal_contribution() == pytest.approx(1.0)

    def test_closed_posture_raises_arousal(self):
        open_ = PoseFeatures(movement_intensity=0.0, body_tension=0.0, posture_openness=1.0, keypoint_confidence=1.0)
        closed = PoseFeatures(movement_intensity=0.0, body_tension=0.0, posture_openness=0.0, keypoint_confidence=1.0)
        assert open_.arousal_contribution() == 0.0
        assert closed.arousal_contribution() == pytest.approx(0.2)

    def test_rejects_out_of_range(self):
        with pytest.raises(ValidationError):
            PoseFeatures(movement_intensity=-0.1, body_tension=0.0, posture_openness=0.0, keypoint_confidence=1.0)

    def test_records_are_immutable(self, calm_pose):
        with pytest.raises(ValidationError):
            calm_pose.movement_intensity = 0.5


# ── Classification output ────────────────────────────────────


class TestClassification:
    def test_confidence_flags(self):
        high = ArousalBandClassification(arousal_band=ArousalBand.GREEN, confidence=0.7)
        low = ArousalBandClassification(arousal_band=ArousalBand.GREEN, confidence=0.49)
        assert high.is_high_confidence and not high.needs_more_data
        assert low.needs_more_data and not low.is_high_confidence

    def test_dominant_modality(self):
        assert ModalityContributions(pose=0.6, facial=0.2, vocal=0.1).dominant_modality == "pose"
        assert ModalityContributions(pose=0.1, facial=0.5, vocal=0.1).dominant_modality == "facial"
        assert ModalityContributions(pose=0.1, facial=0.1, vocal=0.3).dominant_modality == "vocal"


# ── Profile ───────────────────────────────────────────────────


class TestProfile:
    @pytest.mark.parametrize(
        "diagnosis, movement, vocal, expression",
        [
            (Diagnosis.AUTISM, 1.5, 1.3, 0.7),
            (Diagnosis.ADHD, 2.0, 1.5, 1.0),
            (Diagnosis.SPD, 1.3, 1.2, 0.9),
            (Diagnosis.MULTIPLE, 1.0, 1.0, 1.0),
            (Diagnosis.OTHER, 1.0, 1.0, 1.0),
            (Diagnosis.PREFER_NOT_TO_SPECIFY, 1.0, 1.0, 1.0),
        ],
    )
    def test_adjustment_table(self, diagnosis, movement, vocal, expression):
        adj = adjustments_for(diagnosis)
        assert adj.movement_threshold_multiplier == movement
        assert adj.vocal_threshold_multiplier == vocal
        assert adj.expression_sensitivity == expression

    def test_primary_diagnosis_drives_adjustments(self):
        profile = ChildProfile(
            name="Jo",
            age=8,
            diagnosis_info=DiagnosisInfo(
                primary_diagnosis=Diagnosis.SPD,
                additional_diagnoses=[Diagnosis.ADHD],
            ),
        )
        assert profile.get_arousal_threshold_adjustments().movement_threshold_multiplier == 1.3
        assert profile.diagnosis_info.has_diagnosis(Diagnosis.ADHD)
        assert profile.diagnosis_info.all_diagnoses == [Diagnosis.SPD, Diagnosis.ADHD]

    def test_accessors_without_profile(self):
        assert get_arousal_threshold_adjustments(None).movement_threshold_multiplier == 1.0
        assert baseline_calibration(None) is None

    def test_accessors_with_profile(self, high_baseline, plain_profile):
        profile = ChildProfile(name="Kim", age=5, baseline_calibration=high_baseline)
        assert baseline_calibration(profile) is high_baseline
        assert baseline_calibration(plain_profile) is None
        assert get_arousal_threshold_adjustments(plain_profile).vocal_threshold_multiplier == 1.0

    def test_calibration_staleness(self):
        now = datetime(2025, 6, 1, tzinfo=UTC)
        fresh = BaselineCalibration(calibrated_at=now - timedelta(days=10))
        stale = BaselineCalibration(calibrated_at=now - timedelta(days=31))
        assert fresh.is_stale(now) is False
        assert stale.is_stale(now) is True

    def test_age_bounds(self):
        with pytest.raises(ValidationError):
            ChildProfile(name="Too young", age=0)
