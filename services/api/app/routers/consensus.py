"""Generation endpoints: configuration status, clarify, produce, ping."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from core.config import Settings, configuration_status
from core.consensus import ConsensusService
from core.errors import ConsensusError
from core.providers import LLMQuotaError, LLMUpstreamError
from shared.schemas import ClarifyRequest, ClarifyResponse, ConfigurationStatusResponse, ProduceRequest

from ..deps import service_dep, settings_dep

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/configuration-status", response_model=ConfigurationStatusResponse,
            response_model_exclude_none=True)
def get_configuration_status(settings: Settings = Depends(settings_dep)):
    """Whether a usable Gemini credential is configured."""
    return configuration_status(settings).to_dict()


@router.post("/clarify", response_model=ClarifyResponse)
def clarify(body: ClarifyRequest, service: ConsensusService = Depends(service_dep)):
    """Generate 2-4 clarifying questions for a problem.

    Quota exhaustion is reported as an upstream failure (502) here; only
    /produce answers 429.
    """
    try:
        questions = service.clarify(body.problem, body.constraints)
    except LLMQuotaError as e:
        logger.warning("Clarify hit Gemini quota: %s", e)
        return JSONResponse(
            {"error": "Gemini API error", "kind": e.kind, "isQuotaError": True, "details": e.details},
            status_code=502,
        )
    return {"questions": questions}


@router.post("/produce")
def produce(body: ProduceRequest, service: ConsensusService = Depends(service_dep)):
    """Generate and validate a full decision package."""
    result = service.produce(body.problem, body.constraints, body.answers or None)
    return {"success": True, "result": result}


@router.post("/diagnostic-ping")
def diagnostic_ping(service: ConsensusService = Depends(service_dep)):
    """Round-trip a tiny prompt to the generation API and report latency."""
    try:
        latency_ms = service.ping()
    except LLMUpstreamError as e:
        # No status code means the request never got an HTTP answer.
        status = 502 if e.status_code else 500
        message = "Gemini API error" if e.status_code else "Failed to connect to Gemini API"
        return JSONResponse(
            {"success": False, "error": message, "details": e.details if e.details is not None else e.message},
            status_code=status,
        )
    except ConsensusError as e:
        status = 400 if e.kind == "configuration" else 502
        return JSONResponse({"success": False, "error": e.message}, status_code=status)
    return {"success": True, "latencyMs": latency_ms}
