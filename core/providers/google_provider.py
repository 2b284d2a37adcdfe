"""Google Gemini provider over the ``generateContent`` REST endpoint.

Implements the LLMProvider interface with a plain ``httpx`` client so the
API key travels as the ``key`` query parameter and every attempt can be
bounded by its own timeout.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, Optional

import httpx

from .base import (
    LLMConfig,
    LLMEmptyResponseError,
    LLMError,
    LLMProvider,
    LLMQuotaError,
    LLMResponse,
    LLMTimeoutError,
    LLMUpstreamError,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash"

PING_PROMPT = 'Say "Consensus API test successful" in exactly those words.'

_QUOTA_MARKER = "exceeded your current quota"


class GeminiProvider(LLMProvider):
    """LLM Provider backed by the Google Gemini REST API."""

    provider_name = "google"

    def __init__(
        self,
        api_key: str,
        default_model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api_key = api_key
        self.default_model = default_model
        self.base_url = base_url.rstrip("/")
        self._client = client
        self._sleep = sleep
        self._clock = clock

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client()
        return self._client

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.default_model}:generateContent"

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate_text(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        *,
        config: Optional[LLMConfig] = None,
    ) -> LLMResponse:
        cfg = self._default_config(config)
        body = self._build_body(prompt, system_instruction, cfg)

        last_error: Optional[LLMError] = None
        for attempt in range(cfg.retry_attempts + 1):
            if attempt > 0:
                delay = cfg.retry_base_delay * (2 ** (attempt - 1))
                logger.warning(
                    "Retry %d/%d after %.1fs delay",
                    attempt, cfg.retry_attempts, delay,
                )
                self._sleep(delay)

            t0 = time.time()
            try:
                data = self._post(body, timeout=cfg.timeout_seconds)
                raw_text = self._extract_text(data)
            except LLMQuotaError as e:
                logger.error("Gemini quota exhausted (attempt %d): %s", attempt + 1, e)
                raise
            except LLMError as e:
                last_error = e
                logger.error("Gemini API error (attempt %d): %s", attempt + 1, e)
                continue

            latency_ms = int((time.time() - t0) * 1000)
            usage = data.get("usageMetadata") or {}
            candidate = data["candidates"][0]
            logger.info(
                "Gemini call ok: model=%s latency=%dms tokens=%s+%s attempt=%d",
                self.default_model,
                latency_ms,
                usage.get("promptTokenCount", 0),
                usage.get("candidatesTokenCount", 0),
                attempt + 1,
            )
            return LLMResponse(
                raw_text=raw_text,
                model=self.default_model,
                provider=self.provider_name,
                input_tokens=int(usage.get("promptTokenCount", 0) or 0),
                output_tokens=int(usage.get("candidatesTokenCount", 0) or 0),
                latency_ms=latency_ms,
                attempts=attempt + 1,
                finish_reason=candidate.get("finishReason", ""),
            )

        assert last_error is not None
        raise last_error

    def ping(self) -> int:
        """Send the fixed diagnostic prompt; return round-trip latency in ms."""
        t0 = time.time()
        self._post({"contents": [{"parts": [{"text": PING_PROMPT}]}]}, timeout=None)
        latency_ms = int((time.time() - t0) * 1000)
        logger.info("Gemini ping ok: latency=%dms", latency_ms)
        return latency_ms

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _build_body(
        prompt: str, system_instruction: Optional[str], cfg: LLMConfig,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "contents": [{"parts": [{"text": prompt}]}],
        }
        if system_instruction:
            body["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        body["generationConfig"] = {
            "temperature": cfg.temperature,
            "maxOutputTokens": cfg.max_tokens,
        }
        return body

    def _post(self, body: Dict[str, Any], timeout: Optional[float]) -> Dict[str, Any]:
        """POST one attempt and return the decoded envelope.

        ``timeout`` is a total deadline for the attempt. httpx applies it to
        each connect/read/write, and the body is streamed so the deadline is
        also checked between chunks.
        """
        deadline = None if timeout is None else self._clock() + timeout
        try:
            with self.client.stream(
                "POST",
                self.endpoint,
                params={"key": self.api_key},
                json=body,
                timeout=timeout,
            ) as response:
                content = self._read_until(response, deadline, timeout)
                status_code = response.status_code
        except httpx.TimeoutException as e:
            raise self._timeout_error(timeout) from e
        except httpx.HTTPError as e:
            raise LLMUpstreamError(
                f"Failed to connect to Gemini API: {e}", provider=self.provider_name,
            ) from e

        if not 200 <= status_code < 300:
            self._raise_for_status(status_code, content)

        try:
            return json.loads(content)
        except ValueError as e:
            raise LLMEmptyResponseError(
                "Gemini returned a non-JSON envelope",
                provider=self.provider_name,
                details=content[:500].decode("utf-8", errors="replace"),
            ) from e

    def _read_until(
        self, response: httpx.Response, deadline: Optional[float], timeout: Optional[float],
    ) -> bytes:
        chunks = []
        for chunk in response.iter_bytes():
            chunks.append(chunk)
            if deadline is not None and self._clock() > deadline:
                raise self._timeout_error(timeout)
        if deadline is not None and self._clock() > deadline:
            raise self._timeout_error(timeout)
        return b"".join(chunks)

    def _timeout_error(self, timeout: Optional[float]) -> LLMTimeoutError:
        return LLMTimeoutError(
            f"Gemini request timed out after {timeout}s", provider=self.provider_name,
        )

    def _raise_for_status(self, status_code: int, content: bytes) -> None:
        try:
            details: Any = json.loads(content)
        except ValueError:
            details = content.decode("utf-8", errors="replace")

        message = ""
        if isinstance(details, dict) and isinstance(details.get("error"), dict):
            message = str(details["error"].get("message") or "")

        if status_code == 429 or _QUOTA_MARKER in message:
            raise LLMQuotaError(
                message or "API quota exceeded",
                provider=self.provider_name,
                details=details,
            )
        raise LLMUpstreamError(
            f"Gemini API error (HTTP {status_code})",
            provider=self.provider_name,
            status_code=status_code,
            details=details,
        )

    def _extract_text(self, data: Any) -> str:
        text = None
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            pass
        if not text or not isinstance(text, str):
            raise LLMEmptyResponseError(
                "Empty response from Gemini", provider=self.provider_name, details=data,
            )
        return text
