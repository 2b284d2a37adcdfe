"""Output guards for LLM responses.

These guards sit between probabilistic model text and deterministic code:
- JSON is recovered from fenced blocks, bracket spans or the whole reply
- Decision packages are structurally validated before anyone renders them
"""

from __future__ import annotations

import json
import logging
import re
from numbers import Number
from typing import Any, Optional

from .base import LLMJSONError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")

_CLOSERS = {"{": "}", "[": "]"}


# ---------------------------------------------------------------------------
# JSON Output Guard
# ---------------------------------------------------------------------------

class JSONOutputGuard:
    """Recover a JSON value from free-form model text."""

    @staticmethod
    def extract(raw_text: str, expect: Optional[str] = None) -> Any:
        """Parse raw LLM text into a JSON value.

        Strategies, in order:
        1. interior of the first fenced code block (optionally tagged ``json``)
        2. greedy span from the first opener to the last matching closer;
           the opener is ``expect`` (``"{"`` or ``"["``) when given, otherwise
           whichever of the two appears first
        3. the whole text

        Raises ``LLMJSONError`` when the last strategy fails too.
        """
        match = _FENCE_RE.search(raw_text)
        if match:
            try:
                return json.loads(match.group(1))
            except json.JSONDecodeError:
                logger.warning("Fenced block is not valid JSON, trying bracket span")

        span = JSONOutputGuard._bracket_span(raw_text, expect)
        if span is not None:
            try:
                return json.loads(span)
            except json.JSONDecodeError:
                logger.warning("Bracket span is not valid JSON, trying whole text")

        try:
            return json.loads(raw_text)
        except json.JSONDecodeError as e:
            raise LLMJSONError(
                f"Could not extract JSON from LLM response. First 200 chars: {raw_text[:200]}",
                raw_text=raw_text,
            ) from e

    @staticmethod
    def _bracket_span(text: str, expect: Optional[str] = None) -> str | None:
        # Greedy on purpose: prose containing the same bracket can still misfire.
        openers = (expect,) if expect else tuple(_CLOSERS)
        starts = [pos for pos in (text.find(o) for o in openers) if pos >= 0]
        if not starts:
            return None
        start = min(starts)
        end = text.rfind(_CLOSERS[text[start]])
        if end <= start:
            return None
        return text[start:end + 1]


def extract_json(raw_text: str, expect: Optional[str] = None) -> Any:
    return JSONOutputGuard.extract(raw_text, expect)


# ---------------------------------------------------------------------------
# Decision Package Guard
# ---------------------------------------------------------------------------

def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def validate_decision_package(data: Any) -> bool:
    """Structural check of a decision package. Never raises.

    Only shape is checked: numeric ranges (e.g. success_probability outside
    0-100) are passed through as the model returned them.
    """
    if not isinstance(data, dict) or not data:
        return False

    for key in ("title", "headline", "summary"):
        if not isinstance(data.get(key), str):
            return False
    for key in ("options", "recommended_plan", "stakeholder_messages", "metrics"):
        if not isinstance(data.get(key), list):
            return False

    scenarios = data.get("scenarios")
    if not isinstance(scenarios, dict) or not scenarios:
        return False

    for opt in data["options"]:
        if not isinstance(opt, dict):
            return False
        if not opt.get("id") or not opt.get("title") or not opt.get("description"):
            return False
        if not isinstance(opt.get("pros"), list) or not isinstance(opt.get("cons"), list):
            return False
        if not _is_number(opt.get("success_probability")):
            return False

    for key in ("best", "expected", "worst"):
        if not isinstance(scenarios.get(key), str):
            return False

    return True
