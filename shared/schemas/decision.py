"""Decision package shape.

Model output is kept as plain JSON (dicts and lists) so nothing is coerced
on the way to the caller; these TypedDicts document the expected shape.
"""

from __future__ import annotations

from typing import List, Literal, Optional, TypedDict, Union

__all__ = [
    "DecisionOption",
    "PlanStep",
    "Scenarios",
    "StakeholderMessage",
    "Metric",
    "DecisionPackage",
]

Number = Union[int, float]


class DecisionOption(TypedDict):
    id: str
    title: str
    description: str
    pros: List[str]
    cons: List[str]
    estimated_cost: str
    estimated_time_weeks: Number
    success_probability: Number  # 0-100 by convention, not enforced


class PlanStep(TypedDict):
    step_number: int
    action: str
    owner: str
    estimated_time_days: Number


class Scenarios(TypedDict):
    best: str
    expected: str
    worst: str


class StakeholderMessage(TypedDict):
    stakeholder: str
    channel: str
    tone: Literal["formal", "neutral", "persuasive"]
    message: str


class Metric(TypedDict):
    metric_name: str
    target: str
    measure_frequency: str


class DecisionPackage(TypedDict):
    title: str
    headline: str
    summary: str
    options: List[DecisionOption]
    recommended_plan: List[PlanStep]
    scenarios: Scenarios
    stakeholder_messages: List[StakeholderMessage]
    metrics: List[Metric]
    processing_notes: Optional[str]
