"""Shared fixtures for API integration tests.

Uses FastAPI TestClient (in-memory, no network) with the service and the
project store swapped out through ``app.dependency_overrides``.
"""

from __future__ import annotations

import copy
import json
import os
import sys
from unittest.mock import MagicMock

import pytest

# Ensure project root is on sys.path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from core.config import Settings  # noqa: E402
from core.consensus import ConsensusService  # noqa: E402
from core.providers import LLMProvider, LLMResponse  # noqa: E402
from core.storage import InMemoryProjectRepository  # noqa: E402

PROBLEM = "Should we move our support team to a four-day week?"

PACKAGE = {
    "title": "Four-Day Week for Support",
    "headline": "Trial with one team for a quarter",
    "summary": "A scoped trial tests coverage and morale before committing.",
    "options": [
        {
            "id": "opt1",
            "title": "One-team trial",
            "description": "Run a 12-week trial with the EMEA team.",
            "pros": ["Contained risk"],
            "cons": ["Small sample"],
            "estimated_cost": "$0-$10,000",
            "estimated_time_weeks": 12,
            "success_probability": 70,
        },
    ],
    "recommended_plan": [
        {"step_number": 1, "action": "Define coverage SLAs", "owner": "Support lead", "estimated_time_days": 7},
    ],
    "scenarios": {"best": "CSAT rises.", "expected": "CSAT flat.", "worst": "Backlog grows."},
    "stakeholder_messages": [
        {"stakeholder": "Support team", "channel": "all-hands", "tone": "upbeat", "message": "We are trialling it."},
    ],
    "metrics": [{"metric_name": "CSAT", "target": ">= 4.5", "measure_frequency": "weekly"}],
    "processing_notes": None,
}


@pytest.fixture()
def package():
    return copy.deepcopy(PACKAGE)


@pytest.fixture()
def problem():
    return PROBLEM


@pytest.fixture()
def provider():
    """Fake provider; by default returns PACKAGE as bare JSON."""
    fake = MagicMock(spec=LLMProvider)
    fake.generate_text.return_value = LLMResponse(raw_text=json.dumps(PACKAGE), provider="google")
    fake.ping.return_value = 37
    return fake


@pytest.fixture()
def api_settings():
    return Settings(gemini_api_key="test-key", db_path=":memory:")


@pytest.fixture()
def repository():
    return InMemoryProjectRepository()


@pytest.fixture()
def client(api_settings, provider, repository):
    """FastAPI TestClient — no network, no server startup needed."""
    from fastapi.testclient import TestClient

    from services.api.app.deps import repository_dep, service_dep, settings_dep
    from services.api.app.main import app

    service = ConsensusService(api_settings, provider=provider)
    app.dependency_overrides[settings_dep] = lambda: api_settings
    app.dependency_overrides[service_dep] = lambda: service
    app.dependency_overrides[repository_dep] = lambda: repository
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def sample_project(client, problem):
    """Create a project and return its id."""
    resp = client.post("/projects", json={"problem": problem, "constraints": {"budget": "$5k"}})
    assert resp.status_code == 201
    return resp.json()["id"]
