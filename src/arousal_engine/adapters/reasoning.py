"""HTTP client for an externally hosted arousal reasoning service.

The service receives a :class:`ReasoningRequest` serialised as JSON and
answers with::

    {
      "arousal_band": "green|yellow|orange|red|shutdown",
      "confidence": 0.0-1.0,
      "reasoning": "...",
      "key_indicators": ["...", "..."]
    }

How the service builds its prompt (or whatever it does internally) is its
own concern.  Answers are cached briefly so consecutive, near-identical
frames do not each trigger a round trip.
"""

from __future__ import annotations

import time
from typing import Any

import httpx
import structlog
from pydantic import AliasChoices, BaseModel, Field, ValidationError

from arousal_engine.adapters.base import ReasoningAdapter
from arousal_engine.classifier.models import ReasoningRequest
from arousal_engine.config import Settings, get_settings
from arousal_engine.models import ArousalBand

logger = structlog.get_logger(__name__)


# ── Errors ────────────────────────────────────────────────────


class ReasoningError(Exception):
    """Base class for external reasoning failures."""


class ReasoningUnavailableError(ReasoningError):
    """The service is not configured or could not be reached."""


class ReasoningResponseError(ReasoningError):
    """The service answered, but not with a usable classification."""


# ── Response parsing ─────────────────────────────────────────


class ReasoningResponse(BaseModel):
    arousal_band: str = Field(validation_alias=AliasChoices("arousal_band", "arousalBand"))
    confidence: float = Field(allow_inf_nan=False)
    reasoning: str = ""
    key_indicators: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("key_indicators", "keyIndicators"),
    )


def parse_reasoning_response(payload: Any) -> tuple[ArousalBand, float, ReasoningResponse]:
    """Validate a service payload and map it onto the band domain.

    Confidence is clamped to ``[0, 1]``.  Raises
    :class:`ReasoningResponseError` for malformed payloads or unknown bands.
    """
    try:
        parsed = ReasoningResponse.model_validate(payload)
    except ValidationError as exc:
        raise ReasoningResponseError(f"invalid reasoning payload: {exc}") from exc

    try:
        band = ArousalBand(parsed.arousal_band.strip().lower())
    except ValueError as exc:
        raise ReasoningResponseError(
            f"unknown arousal band {parsed.arousal_band!r}"
        ) from exc

    confidence = max(0.0, min(1.0, parsed.confidence))
    return band, confidence, parsed


# ── Client ────────────────────────────────────────────────────


class HttpReasoningClient(ReasoningAdapter):
    """Reasoning adapter backed by a JSON-over-HTTP endpoint.

    Usage::

        client = HttpReasoningClient(endpoint="https://reasoner.example/classify")
        band, confidence = await client.detect_arousal_band(request)
        await client.close()
    """

    def __init__(
        self,
        endpoint: str | None = None,
        *,
        api_key: str | None = None,
        request_timeout: float | None = None,
        cache_seconds: float | None = None,
        client: httpx.AsyncClient | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._endpoint = endpoint if endpoint is not None else settings.reasoning_endpoint
        self._api_key = api_key if api_key is not None else settings.reasoning_api_key
        self._request_timeout = (
            request_timeout if request_timeout is not None else settings.reasoning_timeout_seconds
        )
        self._cache_seconds = (
            cache_seconds if cache_seconds is not None else settings.reasoning_cache_seconds
        )
        self._client = client
        self._owns_client = client is None
        self._last: tuple[float, ArousalBand, float] | None = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._request_timeout)
        return self._client

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def detect_arousal_band(
        self, request: ReasoningRequest
    ) -> tuple[ArousalBand, float]:
        if self._last is not None:
            cached_at, band, confidence = self._last
            if time.monotonic() - cached_at < self._cache_seconds:
                return band, confidence

        if not self._endpoint:
            raise ReasoningUnavailableError("no reasoning endpoint configured")

        client = self._ensure_client()
        try:
            resp = await client.post(
                self._endpoint,
                json=request.model_dump(mode="json"),
                headers=self._headers(),
            )
        except httpx.HTTPError as exc:
            raise ReasoningUnavailableError(f"reasoning request failed: {exc}") from exc

        if resp.status_code != 200:
            logger.warning(
                "reasoning.http_error",
                status=resp.status_code,
                body=resp.text[:200],
            )
            raise ReasoningResponseError(f"reasoning service returned HTTP {resp.status_code}")

        try:
            payload = resp.json()
        except ValueError as exc:
            raise ReasoningResponseError("reasoning service returned non-JSON body") from exc

        band, confidence, parsed = parse_reasoning_response(payload)
        self._last = (time.monotonic(), band, confidence)
        logger.info(
            "reasoning.classified",
            band=band.value,
            confidence=round(confidence, 2),
            indicators=parsed.key_indicators,
        )
        return band, confidence

    def clear_cache(self) -> None:
        self._last = None
        logger.debug("reasoning.cache_cleared")

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
