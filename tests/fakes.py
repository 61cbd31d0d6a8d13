"""In-memory stand-ins for the feature and reasoning adapters."""

from __future__ import annotations

import asyncio
from typing import Any

from arousal_engine.adapters.base import (
    FacialAdapter,
    PoseAdapter,
    ReasoningAdapter,
    VocalAdapter,
)
from arousal_engine.classifier.models import ReasoningRequest
from arousal_engine.models import ArousalBand, FacialFeatures, PoseFeatures, VocalFeatures


class FakePoseAdapter(PoseAdapter):
    def __init__(self, features: PoseFeatures | None = None, error: Exception | None = None):
        self.features = features
        self.error = error
        self.calls = 0

    async def extract_pose_features(self, frame: Any) -> PoseFeatures:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.features


class FakeFacialAdapter(FacialAdapter):
    def __init__(self, features: FacialFeatures | None = None, error: Exception | None = None):
        self.features = features
        self.error = error
        self.calls = 0

    async def extract_facial_features(self, frame: Any) -> FacialFeatures:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.features


class FakeVocalAdapter(VocalAdapter):
    def __init__(self, features: VocalFeatures | None = None, error: Exception | None = None):
        self.features = features
        self.error = error
        self.calls = 0

    async def extract_vocal_features(self, audio: Any) -> VocalFeatures:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.features


class FakeReasoningAdapter(ReasoningAdapter):
    """Answers with a fixed band, raises, or hangs for *delay* seconds."""

    def __init__(
        self,
        band: ArousalBand = ArousalBand.RED,
        confidence: float = 0.95,
        error: Exception | None = None,
        delay: float = 0.0,
    ):
        self.band = band
        self.confidence = confidence
        self.error = error
        self.delay = delay
        self.requests: list[ReasoningRequest] = []
        self.cache_cleared = False

    async def detect_arousal_band(self, request: ReasoningRequest) -> tuple[ArousalBand, float]:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.band, self.confidence

    def clear_cache(self) -> None:
        self.cache_cleared = True


