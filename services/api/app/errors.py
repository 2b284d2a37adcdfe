"""Map ``ConsensusError`` kinds to HTTP responses."""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from core.errors import ConsensusError

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    "configuration": 400,
    "validation": 400,
    "format": 400,
    "quota": 429,
    "upstream": 502,
    "timeout": 502,
    "empty_response": 502,
    "parse": 502,
    "schema": 502,
}

QUOTA_MESSAGE = (
    "API quota exceeded. The Gemini API free tier has reached its rate limit. "
    "Please wait a few minutes and try again, or upgrade your Gemini API plan at "
    "https://ai.google.dev/billing/overview"
)


def error_body(exc: ConsensusError) -> dict:
    if exc.kind == "quota":
        return {"error": QUOTA_MESSAGE, "kind": exc.kind, "isQuotaError": True}
    body = {"error": exc.message, "kind": exc.kind}
    if exc.details is not None:
        body["details"] = exc.details
    return body


async def consensus_error_handler(request: Request, exc: ConsensusError) -> JSONResponse:
    status = STATUS_BY_KIND.get(exc.kind, 500)
    logger.warning("%s %s -> %d (%s): %s", request.method, request.url.path, status, exc.kind, exc)
    if status == 500:
        return JSONResponse({"error": "Internal server error", "kind": "internal"}, status_code=500)
    return JSONResponse(error_body(exc), status_code=status)


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        {"error": "Internal server error", "kind": "internal", "details": str(exc)},
        status_code=500,
    )
