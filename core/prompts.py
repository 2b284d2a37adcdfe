"""Prompt templates for clarifying questions and decision packages.

All prompt constants are module-level so the CLI can print them and tests
can assert on their content.
"""

from __future__ import annotations

from typing import Mapping, Optional

from shared.schemas import Constraints

NOT_SPECIFIED = "Not specified"

# ------------------------------------------------------------------
# System prompts
# ------------------------------------------------------------------

PERSONA = "You are Consensus, a conservative and factual planning agent."

PRODUCE_SYSTEM_PROMPT = (
    f"{PERSONA} ONLY return valid JSON matching the schema exactly. "
    "Do not include commentary, analysis text, or extra fields. "
    "If information is missing, use null or empty arrays but do not hallucinate facts."
)

# ------------------------------------------------------------------
# Schema description embedded in the produce prompt
# ------------------------------------------------------------------

DECISION_PACKAGE_SCHEMA = """\
{
  "title": "<string - descriptive title for the decision>",
  "headline": "<string - one-line summary>",
  "summary": "<string - 2-3 sentence executive summary>",
  "options": [
    {
      "id": "<string - unique id like opt1>",
      "title": "<string>",
      "description": "<string>",
      "pros": ["<string>", ...],
      "cons": ["<string>", ...],
      "estimated_cost": "<string like '$10,000-$50,000'>",
      "estimated_time_weeks": <number>,
      "success_probability": <number 0-100>
    }
  ],
  "recommended_plan": [
    {
      "step_number": <number starting at 1>,
      "action": "<string - specific action to take>",
      "owner": "<string - role responsible>",
      "estimated_time_days": <number>
    }
  ],
  "scenarios": {
    "best": "<string - best case outcome>",
    "expected": "<string - most likely outcome>",
    "worst": "<string - worst case outcome>"
  },
  "stakeholder_messages": [
    {
      "stakeholder": "<string - who to communicate to>",
      "channel": "<string - email/press/social/etc>",
      "tone": "<'formal'|'neutral'|'persuasive'>",
      "message": "<string - the actual message>"
    }
  ],
  "metrics": [
    {
      "metric_name": "<string>",
      "target": "<string>",
      "measure_frequency": "<string - daily/weekly/monthly>"
    }
  ],
  "processing_notes": "<string or null>"
}"""

CLARIFY_TEMPLATE = """\
{persona} Based on the following problem and constraints, generate 2-4 clarifying questions that would help create a better decision package.

Problem: {problem}

{constraints}

Return ONLY a valid JSON array of questions, each with an "id" and "question" field. Example:
[{{"id": "q1", "question": "What is the expected ROI?"}}, {{"id": "q2", "question": "Who are the key decision makers?"}}]

Do not include any other text or explanation."""

PRODUCE_TEMPLATE = """\
Generate a decision package for the following problem and constraints. Return ONLY valid JSON matching this exact structure:

{schema}

Problem Description:
{problem}

{constraints}{answers}

Provide 3-5 realistic options with honest assessments. Be conservative with success probabilities. Create a practical step-by-step plan for the recommended approach."""


# ------------------------------------------------------------------
# Builders
# ------------------------------------------------------------------

def _or_not_specified(value: Optional[str]) -> str:
    return value if value else NOT_SPECIFIED


def render_constraints(constraints: Constraints) -> str:
    """Human-readable constraints block; absent fields read "Not specified"."""
    stakeholders = ", ".join(constraints.stakeholders or [])
    return "\n".join([
        "Constraints:",
        f"- Budget: {_or_not_specified(constraints.budget)}",
        f"- Timeframe: {_or_not_specified(constraints.timeframe)}",
        f"- Stakeholders: {_or_not_specified(stakeholders)}",
        f"- Legal constraints: {_or_not_specified(constraints.legal)}",
        f"- Priority: {_or_not_specified(constraints.priority)}",
    ])


def render_answers(answers: Optional[Mapping[str, str]]) -> str:
    if not answers:
        return ""
    lines = "\n".join(f"- {qid}: {answer}" for qid, answer in answers.items())
    return f"\n\nClarifying Question Answers:\n{lines}"


def build_clarify_prompt(problem: str, constraints: Constraints) -> str:
    return CLARIFY_TEMPLATE.format(
        persona=PERSONA,
        problem=problem,
        constraints=render_constraints(constraints),
    )


def build_produce_prompt(
    problem: str,
    constraints: Constraints,
    answers: Optional[Mapping[str, str]] = None,
) -> str:
    return PRODUCE_TEMPLATE.format(
        schema=DECISION_PACKAGE_SCHEMA,
        problem=problem,
        constraints=render_constraints(constraints),
        answers=render_answers(answers),
    )
