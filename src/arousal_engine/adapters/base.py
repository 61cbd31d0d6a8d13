"""Abstract collaborator contracts consumed by the classifier.

Feature adapters wrap platform computer-vision / audio analysis and turn a
raw frame or audio buffer into a feature record.  A reasoning adapter wraps
an externally hosted service that classifies a fully assembled request.

Adapters may raise any exception; the classifier treats a failed feature
adapter as an absent modality and a failed reasoning adapter as a signal to
fall back to rule-based fusion.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from arousal_engine.classifier.models import ReasoningRequest
from arousal_engine.models import ArousalBand, FacialFeatures, PoseFeatures, VocalFeatures


class PoseAdapter(ABC):
    @abstractmethod
    async def extract_pose_features(self, frame: Any) -> PoseFeatures:
        """Detect body keypoints in *frame* and summarise them."""


class FacialAdapter(ABC):
    @abstractmethod
    async def extract_facial_features(self, frame: Any) -> FacialFeatures:
        """Detect facial landmarks in *frame* and summarise them."""


class VocalAdapter(ABC):
    @abstractmethod
    async def extract_vocal_features(self, audio: Any) -> VocalFeatures:
        """Analyse an audio buffer."""


class ReasoningAdapter(ABC):
    """Contract for an external service that classifies a full request.

    Implementations may perform network I/O and must be assumed slow and
    fallible; the classifier always wraps calls in a timeout.
    """

    @abstractmethod
    async def detect_arousal_band(
        self, request: ReasoningRequest
    ) -> tuple[ArousalBand, float]:
        """Return (band, confidence) for *request*."""

    def clear_cache(self) -> None:
        """Drop any cached decision (call when a session ends)."""

    async def close(self) -> None:
        """Release any resources held by the adapter."""
