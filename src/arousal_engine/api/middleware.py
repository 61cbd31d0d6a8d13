"""HTTP middleware: CORS, request logging and the 500 handler."""

from __future__ import annotations

import time
from typing import Callable

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from arousal_engine.config import get_settings

logger = structlog.get_logger(__name__)


# ── CORS ──────────────────────────────────────────────────────


def add_cors(app: FastAPI) -> None:
    """Configure CORS from ``settings.cors_origins`` (comma-separated or ``"*"``)."""
    origins_raw = get_settings().cors_origins.strip()

    if origins_raw == "*":
        origins = ["*"]
    else:
        origins = [o.strip() for o in origins_raw.split(",") if o.strip()]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ── Request logging ───────────────────────────────────────────

# Polled by dashboards several times a second.
QUIET_PATHS = frozenset({"/health", "/state"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One ``http.request`` event per call; polling endpoints log at debug."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        log = logger.debug if request.url.path in QUIET_PATHS else logger.info
        log(
            "http.request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 1),
        )
        return response


# ── Global error handler ─────────────────────────────────────


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Turn an escaped exception into a 500 that names the failing route."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception(
                "http.unhandled_error",
                method=request.method,
                path=request.url.path,
                error_type=type(exc).__name__,
            )
            return JSONResponse(
                status_code=500,
                content={
                    "detail": "Classification service error.",
                    "error_type": type(exc).__name__,
                    "path": request.url.path,
                },
            )


def setup_middleware(app: FastAPI) -> None:
    """Wire all middleware; the error handler ends up outermost."""
    add_cors(app)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)
