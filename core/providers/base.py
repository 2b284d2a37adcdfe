"""LLM Provider interface — abstract base for text-generation backends.

Every provider must implement ``generate_text`` and ``ping``.
The call sites (clarify / produce) receive a provider via dependency
injection, so tests can swap the Gemini backend for a fake.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any, Optional

from ..errors import ConsensusError


@dataclass(frozen=True)
class LLMConfig:
    """Immutable configuration for a single LLM call."""

    temperature: float = 0.3
    max_tokens: int = 8192
    timeout_seconds: Optional[float] = None
    retry_attempts: int = 0
    retry_base_delay: float = 1.0


# Package production: hard 40s per attempt, one retry after 1s.
PRODUCE_CONFIG = LLMConfig(
    temperature=0.3,
    max_tokens=8192,
    timeout_seconds=40.0,
    retry_attempts=1,
    retry_base_delay=1.0,
)

# Clarifying questions: single attempt, no explicit timeout.
CLARIFY_CONFIG = LLMConfig(
    temperature=0.7,
    max_tokens=1024,
    timeout_seconds=None,
    retry_attempts=0,
)


@dataclass
class LLMResponse:
    """Standardised response from any LLM provider."""

    raw_text: str
    model: str = ""
    provider: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    latency_ms: int = 0
    attempts: int = 1
    finish_reason: str = ""


class LLMProvider(abc.ABC):
    """Abstract base class for LLM providers.

    Subclasses must implement:
    - ``generate_text``: send prompt (+ optional system instruction), receive text
    - ``ping``: cheap round trip used by the diagnostic endpoint
    """

    provider_name: str = "base"

    @abc.abstractmethod
    def generate_text(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        *,
        config: Optional[LLMConfig] = None,
    ) -> LLMResponse:
        """Send a prompt and return the generated text.

        Parameters
        ----------
        prompt : str
            User-level content.
        system_instruction : str, optional
            System-level instruction (persona, rules, output format).
        config : LLMConfig, optional
            Sampling, timeout and retry settings for this call.

        Raises
        ------
        LLMError
            On API failure, timeout, quota exhaustion or empty output
            after all retries.
        """
        ...

    @abc.abstractmethod
    def ping(self) -> int:
        """Perform a minimal generation call and return its latency in ms."""
        ...

    def _default_config(self, config: Optional[LLMConfig]) -> LLMConfig:
        return config or LLMConfig()


class LLMError(ConsensusError):
    """Base exception for LLM provider errors."""

    kind = "upstream"

    def __init__(
        self,
        message: str,
        provider: str = "",
        retryable: bool = False,
        details: Optional[Any] = None,
    ):
        super().__init__(message, details=details)
        self.provider = provider
        self.retryable = retryable


class LLMUpstreamError(LLMError):
    """Non-success HTTP status (other than quota) or transport failure."""

    def __init__(
        self,
        message: str,
        provider: str = "",
        status_code: Optional[int] = None,
        details: Optional[Any] = None,
    ):
        super().__init__(message, provider=provider, retryable=True, details=details)
        self.status_code = status_code


class LLMQuotaError(LLMError):
    """Rate limit / usage quota exhausted. Never retried."""

    kind = "quota"
    is_quota_error = True

    def __init__(self, message: str, provider: str = "", details: Optional[Any] = None):
        super().__init__(message, provider=provider, retryable=False, details=details)
        self.status_code = 429


class LLMTimeoutError(LLMError):
    """LLM call exceeded timeout."""

    kind = "timeout"

    def __init__(self, message: str, provider: str = ""):
        super().__init__(message, provider=provider, retryable=True)


class LLMEmptyResponseError(LLMError):
    """Success status but the envelope carried no candidate text."""

    kind = "empty_response"

    def __init__(self, message: str, provider: str = "", details: Optional[Any] = None):
        super().__init__(message, provider=provider, retryable=True, details=details)


class LLMJSONError(LLMError):
    """LLM returned text from which no JSON value could be recovered."""

    kind = "parse"

    def __init__(self, message: str, raw_text: str = "", provider: str = ""):
        super().__init__(message, provider=provider, retryable=False)
        self.raw_text = raw_text
