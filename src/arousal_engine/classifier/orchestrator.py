"""Classification orchestrator — the stateful entry point of the engine.

One :class:`ArousalBandClassifier` owns a smoothing window, an optional
personal model, an optional external reasoning adapter and the live
"current band" state.  A call to :meth:`ArousalBandClassifier.classify`:

1. Extracts pose, facial and vocal features concurrently; a failing
   adapter only removes its modality.
2. Routes to external reasoning when it is enabled and both a child
   profile and a context are present; any failure or timeout falls
   through to local fusion.
3. Fuses locally (personal model or rule-based).
4. Smooths the raw decision over the recent window.
5. Commits the new live state.

History and live state are written only after every await has completed,
so a cancelled call leaves the classifier untouched.
"""

from __future__ import annotations

import asyncio
import math
from collections.abc import Awaitable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, TypeVar

import structlog

from arousal_engine.classifier.fusion import FEATURE_VECTOR_SIZE, FusionResult, fuse
from arousal_engine.classifier.knn import FeatureDimensionError, PersonalModel
from arousal_engine.classifier.models import (
    DEFAULT_THRESHOLDS,
    ArousalBandClassification,
    ArousalReading,
    ArousalThresholds,
    ClassificationStrategy,
    ExternalReasoningContext,
    FeatureSnapshot,
    ModalityContributions,
    ReasoningRequest,
)
from arousal_engine.classifier.smoothing import (
    DEFAULT_MIN_READINGS,
    DEFAULT_WINDOW,
    TemporalSmoother,
)
from arousal_engine.classifier.thresholds import compute_thresholds
from arousal_engine.config import Settings, get_settings
from arousal_engine.models import ArousalBand, FacialFeatures, PoseFeatures, VocalFeatures
from arousal_engine.profile import (
    ChildProfile,
    baseline_calibration,
    get_arousal_threshold_adjustments,
)

if TYPE_CHECKING:
    from arousal_engine.adapters.base import (
        FacialAdapter,
        PoseAdapter,
        ReasoningAdapter,
        VocalAdapter,
    )

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_REASONING_TIMEOUT = 10.0


async def _guarded(modality: str, call: Awaitable[T] | None) -> T | None:
    """Await one extraction, turning any failure into an absent modality."""
    if call is None:
        return None
    try:
        return await call
    except Exception as exc:
        logger.warning(
            "classifier.modality_failed",
            modality=modality,
            error=str(exc) or type(exc).__name__,
        )
        return None


class ArousalBandClassifier:
    """Fuses multimodal features into a smoothed arousal band.

    Parameters
    ----------
    pose_adapter, facial_adapter, vocal_adapter :
        Feature extractors.  ``None`` disables a modality entirely, which is
        how a features-only deployment (e.g. the HTTP API) is built.
    default_thresholds : ArousalThresholds
        Boundaries before any personalisation.
    history_window : int
        Capacity of the smoothing window.
    min_readings : int
        Readings required before smoothing starts to vote.
    """

    def __init__(
        self,
        pose_adapter: PoseAdapter | None = None,
        facial_adapter: FacialAdapter | None = None,
        vocal_adapter: VocalAdapter | None = None,
        *,
        default_thresholds: ArousalThresholds = DEFAULT_THRESHOLDS,
        history_window: int = DEFAULT_WINDOW,
        min_readings: int = DEFAULT_MIN_READINGS,
    ) -> None:
        self._pose_adapter = pose_adapter
        self._facial_adapter = facial_adapter
        self._vocal_adapter = vocal_adapter
        self._default_thresholds = default_thresholds
        self._smoother = TemporalSmoother(window=history_window, min_readings=min_readings)

        self._profile: ChildProfile | None = None
        self._personal_model: PersonalModel | None = None
        self._reasoning: ReasoningAdapter | None = None
        self._reasoning_timeout = DEFAULT_REASONING_TIMEOUT

        self.current_band: ArousalBand | None = None
        self.current_confidence: float = 0.0
        self.last_classification_time: datetime | None = None
        self.feature_snapshot: FeatureSnapshot | None = None

    # ── Configuration ─────────────────────────────────────────

    @property
    def child_profile(self) -> ChildProfile | None:
        return self._profile

    @property
    def personal_model(self) -> PersonalModel | None:
        return self._personal_model

    @property
    def reasoning_enabled(self) -> bool:
        return self._reasoning is not None

    @property
    def active_strategy(self) -> ClassificationStrategy:
        """Strategy the next call will try first.

        ``EXTERNAL_REASONING`` only applies to calls that supply an
        :class:`ExternalReasoningContext`; calls without one use the local
        strategy that follows it here.
        """
        if self._reasoning is not None and self._profile is not None:
            return ClassificationStrategy.EXTERNAL_REASONING
        if self._personal_model is not None:
            return ClassificationStrategy.PERSONAL_MODEL
        return ClassificationStrategy.RULE_BASED

    def set_child_profile(self, profile: ChildProfile | None) -> None:
        self._profile = profile
        if profile is None:
            logger.info("classifier.profile_cleared")
            return

        adjustments = profile.get_arousal_threshold_adjustments()
        baseline = profile.baseline_calibration
        logger.info(
            "classifier.profile_set",
            profile_id=profile.id,
            diagnosis=(
                profile.diagnosis_info.primary_diagnosis.value
                if profile.diagnosis_info
                else None
            ),
            movement_multiplier=adjustments.movement_threshold_multiplier,
            vocal_multiplier=adjustments.vocal_threshold_multiplier,
            has_baseline=baseline is not None,
        )
        if baseline is not None and baseline.is_stale():
            logger.warning(
                "classifier.baseline_stale",
                profile_id=profile.id,
                calibrated_at=baseline.calibrated_at.isoformat(),
            )

    def set_personal_model(self, model: PersonalModel | None) -> None:
        """Load (or with ``None`` unload) a personal k-NN model.

        Raises
        ------
        FeatureDimensionError
            If the model was not trained on full-length fusion vectors.
        """
        if model is None:
            self.clear_personal_model()
            return
        if model.feature_dimension != FEATURE_VECTOR_SIZE:
            raise FeatureDimensionError(
                f"personal model has dimension {model.feature_dimension}, "
                f"fusion vectors have {FEATURE_VECTOR_SIZE}"
            )
        self._personal_model = model
        logger.info(
            "personal_model.loaded",
            examples=len(model.training_data),
            dimension=model.feature_dimension,
            k=model.k,
        )

    def clear_personal_model(self) -> None:
        self._personal_model = None
        logger.info("personal_model.cleared")

    def enable_external_reasoning(
        self,
        adapter: ReasoningAdapter,
        timeout: float = DEFAULT_REASONING_TIMEOUT,
    ) -> None:
        if timeout <= 0:
            raise ValueError("reasoning timeout must be positive")
        self._reasoning = adapter
        self._reasoning_timeout = timeout
        logger.info("classifier.reasoning_enabled", timeout=timeout)

    def disable_external_reasoning(self) -> ReasoningAdapter | None:
        """Stop routing to external reasoning; returns the detached adapter."""
        adapter, self._reasoning = self._reasoning, None
        logger.info("classifier.reasoning_disabled")
        return adapter

    def clear_reasoning_cache(self) -> None:
        if self._reasoning is not None:
            self._reasoning.clear_cache()

    def current_thresholds(self) -> ArousalThresholds:
        """Band boundaries personalised for the current profile."""
        return compute_thresholds(
            self._default_thresholds,
            baseline_calibration(self._profile),
            get_arousal_threshold_adjustments(self._profile),
        )

    # ── History ───────────────────────────────────────────────

    def clear_history(self) -> None:
        """Reset the smoothing window and the live state (e.g. new session)."""
        self._smoother.clear()
        self.current_band = None
        self.current_confidence = 0.0
        self.last_classification_time = None
        self.feature_snapshot = None
        logger.debug("classifier.history_cleared")

    def recent_history(self, count: int = 10) -> list[ArousalReading]:
        return self._smoother.recent(count)

    # ── Classification ────────────────────────────────────────

    async def classify(
        self,
        frame: Any,
        audio: Any | None = None,
        context: ExternalReasoningContext | None = None,
    ) -> ArousalBandClassification:
        """Classify one video frame (and optional audio buffer).

        Never raises for extraction or external reasoning failures; a
        personal model dimension mismatch does propagate.
        """
        pose, facial, vocal = await asyncio.gather(
            _guarded(
                "pose",
                self._pose_adapter.extract_pose_features(frame)
                if self._pose_adapter is not None
                else None,
            ),
            _guarded(
                "facial",
                self._facial_adapter.extract_facial_features(frame)
                if self._facial_adapter is not None
                else None,
            ),
            _guarded(
                "vocal",
                self._vocal_adapter.extract_vocal_features(audio)
                if self._vocal_adapter is not None and audio is not None
                else None,
            ),
        )
        return await self.classify_features(pose, facial, vocal, context)

    async def classify_features(
        self,
        pose: PoseFeatures | None,
        facial: FacialFeatures | None,
        vocal: VocalFeatures | None,
        context: ExternalReasoningContext | None = None,
    ) -> ArousalBandClassification:
        """Run routing, fusion, smoothing and commit on pre-extracted features."""
        contributions = ModalityContributions.from_features(pose, facial, vocal)
        snapshot: FeatureSnapshot | None = None

        reasoned = await self._try_external_reasoning(pose, facial, vocal, context)
        if reasoned is not None:
            band, confidence = reasoned
            strategy = ClassificationStrategy.EXTERNAL_REASONING
        else:
            result = self._fuse(pose, facial, vocal)
            band, confidence, strategy = result.band, result.confidence, result.strategy
            snapshot = FeatureSnapshot.capture(
                pose,
                facial,
                vocal,
                band,
                confidence,
                using_personal_model=strategy is ClassificationStrategy.PERSONAL_MODEL,
            )

        # Nothing above is committed; state changes start here.
        now = datetime.now(UTC)
        smoothed_band, smoothed_confidence = self._smoother.smooth(band, confidence, now)
        self.current_band = smoothed_band
        self.current_confidence = smoothed_confidence
        self.last_classification_time = now
        if snapshot is not None:
            self.feature_snapshot = snapshot

        logger.info(
            "classifier.classified",
            strategy=strategy.value,
            raw_band=band.value,
            band=smoothed_band.value,
            confidence=round(smoothed_confidence, 3),
        )
        return ArousalBandClassification(
            arousal_band=smoothed_band,
            confidence=smoothed_confidence,
            contributions=contributions,
            timestamp=now,
            strategy=strategy,
        )

    def classify_from_features(
        self,
        pose: PoseFeatures | None,
        facial: FacialFeatures | None,
        vocal: VocalFeatures | None,
    ) -> ArousalBandClassification:
        """Synchronous, side-effect-free classification of given features.

        Skips extraction, external reasoning and smoothing, and does not
        touch history or live state.
        """
        result = self._fuse(pose, facial, vocal)
        return ArousalBandClassification(
            arousal_band=result.band,
            confidence=result.confidence,
            contributions=result.contributions,
            strategy=result.strategy,
        )

    # ── Internals ─────────────────────────────────────────────

    def _fuse(
        self,
        pose: PoseFeatures | None,
        facial: FacialFeatures | None,
        vocal: VocalFeatures | None,
    ) -> FusionResult:
        return fuse(
            pose,
            facial,
            vocal,
            personal_model=self._personal_model,
            thresholds=self.current_thresholds(),
        )

    async def _try_external_reasoning(
        self,
        pose: PoseFeatures | None,
        facial: FacialFeatures | None,
        vocal: VocalFeatures | None,
        context: ExternalReasoningContext | None,
    ) -> tuple[ArousalBand, float] | None:
        adapter = self._reasoning
        profile = self._profile
        if adapter is None or profile is None or context is None:
            return None

        request = ReasoningRequest(
            profile=profile,
            pose=pose,
            facial=facial,
            vocal=vocal,
            behaviors=context.detected_behaviors,
            environment=context.environment,
            parent_stress=context.parent_stress,
            session_context=context.session_context,
        )
        try:
            band, confidence = await asyncio.wait_for(
                adapter.detect_arousal_band(request),
                timeout=self._reasoning_timeout,
            )
            band = ArousalBand(band)
            confidence = float(confidence)
            if not math.isfinite(confidence):
                raise ValueError(f"non-finite reasoning confidence: {confidence}")
        except Exception as exc:
            logger.warning(
                "classifier.fallback",
                reason=type(exc).__name__,
                error=str(exc),
            )
            return None
        return band, max(0.0, min(1.0, confidence))


# ── Factory ───────────────────────────────────────────────────


def create_classifier(
    pose_adapter: PoseAdapter | None = None,
    facial_adapter: FacialAdapter | None = None,
    vocal_adapter: VocalAdapter | None = None,
    settings: Settings | None = None,
) -> ArousalBandClassifier:
    """Build a classifier from application settings.

    External reasoning is attached only when ``reasoning_enabled`` is set
    and an endpoint is configured.
    """
    settings = settings or get_settings()
    classifier = ArousalBandClassifier(
        pose_adapter,
        facial_adapter,
        vocal_adapter,
        history_window=settings.history_window,
        min_readings=settings.smoothing_min_readings,
    )
    if settings.reasoning_enabled and settings.reasoning_endpoint:
        from arousal_engine.adapters.reasoning import HttpReasoningClient

        classifier.enable_external_reasoning(
            HttpReasoningClient(settings=settings),
            timeout=settings.reasoning_timeout_seconds,
        )
    return classifier
