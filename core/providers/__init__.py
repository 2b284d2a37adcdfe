"""LLM Provider abstraction layer.

Wraps the Google Gemini text-generation endpoint behind a small interface,
plus output guards that recover and validate JSON from model replies.
"""

from .base import (
    CLARIFY_CONFIG,
    PRODUCE_CONFIG,
    LLMConfig,
    LLMEmptyResponseError,
    LLMError,
    LLMJSONError,
    LLMProvider,
    LLMQuotaError,
    LLMResponse,
    LLMTimeoutError,
    LLMUpstreamError,
)
from .google_provider import GeminiProvider
from .guards import JSONOutputGuard, extract_json, validate_decision_package

__all__ = [
    "CLARIFY_CONFIG",
    "PRODUCE_CONFIG",
    "LLMConfig",
    "LLMEmptyResponseError",
    "LLMError",
    "LLMJSONError",
    "LLMProvider",
    "LLMQuotaError",
    "LLMResponse",
    "LLMTimeoutError",
    "LLMUpstreamError",
    "GeminiProvider",
    "JSONOutputGuard",
    "extract_json",
    "validate_decision_package",
]
