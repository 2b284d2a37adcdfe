"""Request/response contracts for the clarify and produce call sites."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "Constraints",
    "ClarifyingQuestion",
    "ClarifyRequest",
    "ProduceRequest",
    "ClarifyResponse",
    "ConfigurationStatusResponse",
]


class Constraints(BaseModel):
    """User-supplied soft limits. Every field is optional."""

    budget: Optional[str] = None
    timeframe: Optional[str] = None
    stakeholders: Optional[List[str]] = None
    legal: Optional[str] = None
    priority: Optional[str] = None


class ClarifyingQuestion(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    question: str


class ClarifyRequest(BaseModel):
    # Length is checked by the service so that short input maps to 400, not 422.
    problem: str = ""
    constraints: Constraints = Field(default_factory=Constraints)


class ProduceRequest(ClarifyRequest):
    answers: Optional[Dict[str, str]] = None


class ClarifyResponse(BaseModel):
    questions: List[ClarifyingQuestion]


class ConfigurationStatusResponse(BaseModel):
    configured: bool
    reason: Optional[str] = None
