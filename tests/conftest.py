"""Shared fixtures for the Consensus core test suite.

Upstream HTTP is simulated with ``httpx.MockTransport``; the provider seen
by the call sites is a ``MagicMock`` returning canned ``LLMResponse``s.
"""

import copy
import json
import time
from unittest.mock import MagicMock

import httpx
import pytest

from core.config import Settings
from core.consensus import ConsensusService
from core.providers import GeminiProvider, LLMProvider, LLMResponse
from core.storage import InMemoryProjectRepository
from shared.schemas import Constraints


PROBLEM = "Should we expand into the European market this year?"


SAMPLE_PACKAGE = {
    "title": "European Expansion Decision",
    "headline": "Pilot in one market before a full rollout",
    "summary": "Expansion is feasible within budget. A staged entry limits risk.",
    "options": [
        {
            "id": "opt1",
            "title": "Pilot in Germany",
            "description": "Launch a limited pilot in a single market.",
            "pros": ["Low risk", "Fast learning"],
            "cons": ["Slower revenue"],
            "estimated_cost": "$150,000-$250,000",
            "estimated_time_weeks": 12,
            "success_probability": 65,
        },
        {
            "id": "opt2",
            "title": "Full EU launch",
            "description": "Enter five markets at once.",
            "pros": ["Scale"],
            "cons": ["Budget overrun risk", "Regulatory load"],
            "estimated_cost": "$450,000-$600,000",
            "estimated_time_weeks": 26,
            "success_probability": 35,
        },
    ],
    "recommended_plan": [
        {"step_number": 1, "action": "Hire country lead", "owner": "COO", "estimated_time_days": 30},
        {"step_number": 2, "action": "GDPR review", "owner": "Legal", "estimated_time_days": 14},
    ],
    "scenarios": {
        "best": "Pilot hits targets in 3 months.",
        "expected": "Pilot breaks even in 6 months.",
        "worst": "Pilot is shut down after 6 months.",
    },
    "stakeholder_messages": [
        {"stakeholder": "Board", "channel": "email", "tone": "formal", "message": "We propose a pilot."},
    ],
    "metrics": [
        {"metric_name": "Pilot revenue", "target": "$100k", "measure_frequency": "monthly"},
    ],
    "processing_notes": None,
}

SAMPLE_QUESTIONS = [
    {"id": "q1", "question": "Which countries are under consideration?"},
    {"id": "q2", "question": "Is there an existing EU customer base?"},
    {"id": "q3", "question": "Who owns the final go/no-go decision?"},
]


@pytest.fixture
def sample_package():
    return copy.deepcopy(SAMPLE_PACKAGE)


@pytest.fixture
def sample_constraints():
    return Constraints(budget="$500,000", timeframe="6 months")


@pytest.fixture
def settings():
    return Settings(gemini_api_key="test-key", db_path=":memory:")


@pytest.fixture
def unconfigured_settings():
    return Settings(gemini_api_key="REPLACE_ME", db_path=":memory:")


@pytest.fixture
def mock_provider():
    """Provider whose generate_text returns SAMPLE_PACKAGE in a json fence."""
    provider = MagicMock(spec=LLMProvider)
    provider.generate_text.return_value = LLMResponse(
        raw_text="```json\n" + json.dumps(SAMPLE_PACKAGE) + "\n```",
        provider="google",
    )
    provider.ping.return_value = 42
    return provider


@pytest.fixture
def service(settings, mock_provider):
    return ConsensusService(settings, provider=mock_provider)


@pytest.fixture
def repository():
    return InMemoryProjectRepository()


@pytest.fixture
def recorded_sleeps():
    return []


@pytest.fixture
def make_gemini(recorded_sleeps):
    """Build a GeminiProvider over a MockTransport driven by ``handler``.

    Returns ``(provider, requests)``; every request sent is appended to
    ``requests`` and every backoff delay to ``recorded_sleeps``. Pass
    ``clock`` to drive the per-attempt deadline.
    """
    def _make(handler, clock=time.monotonic):
        requests = []

        def _handler(request):
            requests.append(request)
            return handler(request)

        client = httpx.Client(transport=httpx.MockTransport(_handler))
        provider = GeminiProvider(
            api_key="test-key",
            client=client,
            sleep=recorded_sleeps.append,
            clock=clock,
        )
        return provider, requests

    return _make


@pytest.fixture
def problem():
    return PROBLEM


@pytest.fixture
def sample_questions():
    return copy.deepcopy(SAMPLE_QUESTIONS)
