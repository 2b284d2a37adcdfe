"""Clarify / produce call sites.

Each call composes a domain prompt from user input, invokes the generation
provider and then the output guards. Preconditions are checked before any
network traffic; every failure surfaces as a distinct ``ConsensusError``.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from pydantic import ValidationError

from shared.schemas import ClarifyingQuestion, Constraints

from .config import Settings, configuration_status
from .errors import ConfigurationError, InputValidationError, SchemaValidationError
from .prompts import PRODUCE_SYSTEM_PROMPT, build_clarify_prompt, build_produce_prompt
from .providers import (
    CLARIFY_CONFIG,
    PRODUCE_CONFIG,
    GeminiProvider,
    LLMJSONError,
    LLMProvider,
    extract_json,
    validate_decision_package,
)

logger = logging.getLogger(__name__)

MIN_PROBLEM_LENGTH = 10


class ConsensusService:
    """Turns a problem statement into clarifying questions or a decision package."""

    def __init__(self, settings: Settings, provider: Optional[LLMProvider] = None):
        self.settings = settings
        self._provider = provider

    @property
    def provider(self) -> LLMProvider:
        if self._provider is None:
            self._provider = GeminiProvider(
                api_key=self.settings.gemini_api_key,
                default_model=self.settings.gemini_model,
                base_url=self.settings.gemini_base_url,
            )
        return self._provider

    # ------------------------------------------------------------------
    # Preconditions
    # ------------------------------------------------------------------

    def _require_configured(self) -> None:
        status = configuration_status(self.settings)
        if not status.configured:
            raise ConfigurationError(
                "GEMINI_API_KEY not configured. Please set the GEMINI_API_KEY environment variable."
            )

    @staticmethod
    def _require_problem(problem: str) -> None:
        if not problem or len(problem.strip()) < MIN_PROBLEM_LENGTH:
            raise InputValidationError(
                f"Problem description must be at least {MIN_PROBLEM_LENGTH} characters"
            )

    # ------------------------------------------------------------------
    # Call sites
    # ------------------------------------------------------------------

    def clarify(self, problem: str, constraints: Constraints) -> List[ClarifyingQuestion]:
        """Ask the model for 2-4 clarifying questions. Single attempt."""
        self._require_configured()
        self._require_problem(problem)

        logger.info("Clarify request: problem_length=%d", len(problem))
        response = self.provider.generate_text(
            build_clarify_prompt(problem, constraints), config=CLARIFY_CONFIG,
        )

        parsed = extract_json(response.raw_text, expect="[")
        if not isinstance(parsed, list):
            raise LLMJSONError(
                "Failed to parse Gemini response: expected a JSON array of questions",
                raw_text=response.raw_text,
            )
        try:
            questions = [ClarifyingQuestion.model_validate(item) for item in parsed]
        except ValidationError as e:
            raise LLMJSONError(
                f"Failed to parse Gemini response: {e.error_count()} invalid question(s)",
                raw_text=response.raw_text,
            ) from e

        logger.info("Clarify ok: %d questions", len(questions))
        return questions

    def produce(
        self,
        problem: str,
        constraints: Constraints,
        answers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """Ask the model for a full decision package and validate its shape.

        The validated value is returned exactly as parsed.
        """
        self._require_configured()
        self._require_problem(problem)

        logger.info(
            "Produce request: problem_length=%d has_answers=%s",
            len(problem), bool(answers),
        )
        response = self.provider.generate_text(
            build_produce_prompt(problem, constraints, answers),
            PRODUCE_SYSTEM_PROMPT,
            config=PRODUCE_CONFIG,
        )

        try:
            package = extract_json(response.raw_text, expect="{")
        except LLMJSONError:
            logger.error("Decision package parse failed. Raw: %s", response.raw_text[:500])
            raise

        if not validate_decision_package(package):
            logger.error("Decision package does not match expected schema")
            raise SchemaValidationError("Response does not match expected schema")

        logger.info(
            "Produce ok: %d options, attempts=%d", len(package["options"]), response.attempts,
        )
        return package

    def ping(self) -> int:
        """Diagnostic round trip; returns latency in ms."""
        self._require_configured()
        return self.provider.ping()
