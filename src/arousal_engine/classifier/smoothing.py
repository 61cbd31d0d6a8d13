"""Temporal smoothing over a bounded, recency-weighted history window."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from datetime import datetime

from arousal_engine.classifier.models import ArousalReading
from arousal_engine.models import ArousalBand

DEFAULT_WINDOW = 5
DEFAULT_MIN_READINGS = 3


class TemporalSmoother:
    """Suppresses single-frame flicker between adjacent bands.

    Keeps the last ``window`` readings.  Until ``min_readings`` are held,
    inputs pass through unchanged; afterwards the band with the highest
    confidence-times-recency weight wins and the input confidence is
    discounted by how much of the window agrees with it.
    """

    def __init__(
        self,
        window: int = DEFAULT_WINDOW,
        min_readings: int = DEFAULT_MIN_READINGS,
    ) -> None:
        if window < 1:
            raise ValueError("window must be at least 1")
        self._history: deque[ArousalReading] = deque(maxlen=window)
        self._min_readings = min_readings

    @property
    def capacity(self) -> int:
        return self._history.maxlen or 0

    def __len__(self) -> int:
        return len(self._history)

    def smooth(
        self,
        band: ArousalBand,
        confidence: float,
        timestamp: datetime | None = None,
    ) -> tuple[ArousalBand, float]:
        reading = (
            ArousalReading(band=band, confidence=confidence, timestamp=timestamp)
            if timestamp is not None
            else ArousalReading(band=band, confidence=confidence)
        )
        return smooth(reading, self._history, self._min_readings)

    def recent(self, count: int = 10) -> list[ArousalReading]:
        if count <= 0:
            return []
        return list(self._history)[-count:]

    def clear(self) -> None:
        self._history.clear()


def smooth(
    reading: ArousalReading,
    history: deque[ArousalReading],
    min_readings: int = DEFAULT_MIN_READINGS,
) -> tuple[ArousalBand, float]:
    """Append *reading* to *history* and return the smoothed (band, confidence).

    *history* should be a ``deque`` with a ``maxlen``; the oldest entry is
    evicted once it is full.
    """
    history.append(reading)
    return _vote(history, reading.band, reading.confidence, min_readings)


def _vote(
    history: Iterable[ArousalReading],
    band: ArousalBand,
    confidence: float,
    min_readings: int,
) -> tuple[ArousalBand, float]:
    readings = list(history)
    if len(readings) < min_readings:
        return band, confidence

    n = len(readings)
    weights: dict[ArousalBand, float] = {}
    last_seen: dict[ArousalBand, int] = {}
    for index, reading in enumerate(readings):
        recency = (index + 1) / n
        weights[reading.band] = weights.get(reading.band, 0.0) + reading.confidence * recency
        last_seen[reading.band] = index

    total = sum(weights.values())
    if total <= 0:
        return band, confidence

    # Ties go to the band seen most recently.
    winner = max(weights, key=lambda b: (weights[b], last_seen[b]))
    agreement = weights[winner] / total
    return winner, confidence * agreement
