"""Tests for temporal smoothing."""

from __future__ import annotations

from collections import deque

import pytest

from arousal_engine.classifier.models import ArousalReading
from arousal_engine.classifier.smoothing import TemporalSmoother, smooth
from arousal_engine.models import ArousalBand


class TestStartupBypass:
    def test_first_two_readings_pass_through(self):
        smoother = TemporalSmoother()
        assert smoother.smooth(ArousalBand.RED, 0.9) == (ArousalBand.RED, 0.9)
        assert smoother.smooth(ArousalBand.GREEN, 0.4) == (ArousalBand.GREEN, 0.4)

    def test_module_level_smooth_with_deque(self):
        history: deque[ArousalReading] = deque(maxlen=5)
        reading = ArousalReading(band=ArousalBand.YELLOW, confidence=0.6)
        assert smooth(reading, history) == (ArousalBand.YELLOW, 0.6)
        assert len(history) == 1


class TestVoting:
    def test_single_flicker_suppressed(self):
        smoother = TemporalSmoother()
        for _ in range(3):
            smoother.smooth(ArousalBand.GREEN, 0.8)
        band, conf = smoother.smooth(ArousalBand.RED, 0.6)
        # green: 0.8 * (0.25 + 0.5 + 0.75) = 1.2, red: 0.6 * 1.0 = 0.6
        assert band == ArousalBand.GREEN
        assert conf == pytest.approx(0.6 * 1.2 / 1.8)

    def test_unanimous_window_keeps_confidence(self):
        smoother = TemporalSmoother()
        for _ in range(4):
            band, conf = smoother.smooth(ArousalBand.YELLOW, 0.7)
        assert band == ArousalBand.YELLOW
        assert conf == pytest.approx(0.7)

    def test_sustained_change_wins(self):
        smoother = TemporalSmoother()
        for _ in range(2):
            smoother.smooth(ArousalBand.GREEN, 0.7)
        for _ in range(3):
            band, _ = smoother.smooth(ArousalBand.ORANGE, 0.7)
        assert band == ArousalBand.ORANGE

    def test_tie_goes_to_most_recent_band(self):
        smoother = TemporalSmoother()
        smoother.smooth(ArousalBand.YELLOW, 0.5)   # 0.5 * 0.25
        smoother.smooth(ArousalBand.GREEN, 0.25)   # 0.25 * 0.5
        smoother.smooth(ArousalBand.ORANGE, 0.0)
        band, _ = smoother.smooth(ArousalBand.ORANGE, 0.0)
        assert band == ArousalBand.GREEN

    def test_custom_min_readings(self):
        smoother = TemporalSmoother(min_readings=1)
        smoother.smooth(ArousalBand.GREEN, 0.9)
        band, _ = smoother.smooth(ArousalBand.RED, 0.1)
        assert band == ArousalBand.GREEN


class TestWindow:
    def test_bounded_history(self):
        smoother = TemporalSmoother(window=5)
        for i in range(12):
            smoother.smooth(ArousalBand.GREEN, 0.5)
            assert len(smoother) <= 5
        assert len(smoother) == 5
        assert smoother.capacity == 5

    def test_oldest_evicted_first(self):
        smoother = TemporalSmoother(window=3)
        for band in (ArousalBand.SHUTDOWN, ArousalBand.GREEN, ArousalBand.YELLOW, ArousalBand.ORANGE):
            smoother.smooth(band, 0.5)
        assert [r.band for r in smoother.recent()] == [
            ArousalBand.GREEN,
            ArousalBand.YELLOW,
            ArousalBand.ORANGE,
        ]

    def test_recent_count(self):
        smoother = TemporalSmoother()
        for _ in range(4):
            smoother.smooth(ArousalBand.GREEN, 0.5)
        assert len(smoother.recent(2)) == 2
        assert smoother.recent(0) == []

    def test_clear(self):
        smoother = TemporalSmoother()
        smoother.smooth(ArousalBand.GREEN, 0.5)
        smoother.clear()
        assert len(smoother) == 0

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            TemporalSmoother(window=0)
