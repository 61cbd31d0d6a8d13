"""FastAPI application exposing one arousal classifier over HTTP.

The service is features-only: callers run their own pose / facial / vocal
extraction and post the resulting records.  The classifier, its smoothing
window and any loaded profile or personal model live for the lifetime of
the process.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from arousal_engine.api.middleware import setup_middleware
from arousal_engine.api.routes.classify import router as classify_router
from arousal_engine.api.routes.profile import router as profile_router
from arousal_engine.classifier.orchestrator import ArousalBandClassifier, create_classifier
from arousal_engine.config import get_settings

logger = structlog.get_logger(__name__)

# ── Shared state (initialised in lifespan) ────────────────────

_classifier: ArousalBandClassifier | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hooks."""
    global _classifier

    settings = get_settings()
    _classifier = create_classifier(settings=settings)
    logger.info(
        "server.started",
        port=settings.api_port,
        reasoning=_classifier.reasoning_enabled,
        history_window=settings.history_window,
    )

    yield  # ← application runs

    adapter = _classifier.disable_external_reasoning()
    if adapter is not None:
        await adapter.close()
    _classifier = None
    logger.info("server.stopped")


app = FastAPI(
    title="Arousal Engine API",
    description="Multimodal arousal band classification for caregiver coaching.",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Middleware ────────────────────────────────────────────────
setup_middleware(app)

# ── Routers ───────────────────────────────────────────────────
app.include_router(classify_router)
app.include_router(profile_router)


# ── Health ────────────────────────────────────────────────────

@app.get("/health", tags=["system"])
async def health():
    return {
        "status": "ok",
        "ready": _classifier is not None,
        "strategy": _classifier.active_strategy.value if _classifier else None,
    }
