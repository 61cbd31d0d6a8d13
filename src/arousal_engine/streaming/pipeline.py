"""Async frame pipeline serialising calls into one classifier."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, NamedTuple

import structlog

from arousal_engine.classifier.models import ArousalBandClassification, ExternalReasoningContext
from arousal_engine.classifier.orchestrator import ArousalBandClassifier

logger = structlog.get_logger(__name__)

Consumer = Callable[[ArousalBandClassification], Awaitable[None]]


class FrameItem(NamedTuple):
    frame: Any
    audio: Any | None = None
    context: ExternalReasoningContext | None = None


class FramePipeline:
    """In-process async pipeline that buffers captured frames, classifies
    them one at a time and forwards each result to registered observers.

    A classifier owns its smoothing window, so two overlapping ``classify``
    calls would race on it.  Producers (camera / microphone loops) publish
    into an :class:`asyncio.Queue` and a single consumer loop drains it.
    """

    def __init__(self, classifier: ArousalBandClassifier, maxsize: int = 64) -> None:
        self._classifier = classifier
        self._queue: asyncio.Queue[FrameItem] = asyncio.Queue(maxsize=maxsize)
        self._consumers: list[Consumer] = []
        self._running = False
        self._processed_total = 0

    # ── Configuration ─────────────────────────────────────────

    def add_consumer(self, fn: Consumer) -> None:
        """Register an async callback that receives every classification."""
        self._consumers.append(fn)

    # ── Producer side ─────────────────────────────────────────

    async def publish(
        self,
        frame: Any,
        audio: Any | None = None,
        context: ExternalReasoningContext | None = None,
    ) -> None:
        """Enqueue a frame for classification."""
        await self._queue.put(FrameItem(frame, audio, context))

    # ── Consumer loop ─────────────────────────────────────────

    async def start(self) -> None:
        """Start the consumer loop (run as a background task)."""
        self._running = True
        logger.info("frame_pipeline.started", consumers=len(self._consumers))

        last_stats_time = time.monotonic()

        while self._running:
            try:
                item = await asyncio.wait_for(self._queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue

            try:
                await self._process(item)
            finally:
                self._queue.task_done()

            now = time.monotonic()
            if now - last_stats_time >= 60:
                logger.info(
                    "frame_pipeline.stats",
                    processed_total=self._processed_total,
                    queue_pending=self._queue.qsize(),
                )
                last_stats_time = now

    async def _process(self, item: FrameItem) -> None:
        try:
            classification = await self._classifier.classify(
                item.frame, item.audio, item.context
            )
        except Exception as exc:
            logger.error("frame_pipeline.classify_error", error=str(exc))
            return

        self._processed_total += 1
        for consumer in self._consumers:
            try:
                await consumer(classification)
            except Exception as exc:
                logger.error(
                    "frame_pipeline.consumer_error",
                    consumer=getattr(consumer, "__qualname__", repr(consumer)),
                    error=str(exc),
                )

    async def join(self) -> None:
        """Wait until every published frame has been processed."""
        await self._queue.join()

    async def stop(self) -> None:
        """Gracefully stop the consumer loop."""
        self._running = False
        logger.info("frame_pipeline.stopped")

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def processed_total(self) -> int:
        return self._processed_total
