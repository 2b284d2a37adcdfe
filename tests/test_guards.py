"""Tests for JSON extraction and decision package validation."""

import copy
import json

import pytest

from core.providers import JSONOutputGuard, LLMJSONError, extract_json, validate_decision_package


def _minimal_package():
    return {
        "title": "T",
        "headline": "H",
        "summary": "S",
        "options": [
            {
                "id": "opt1",
                "title": "Option",
                "description": "Desc",
                "pros": [],
                "cons": [],
                "estimated_cost": "$1",
                "estimated_time_weeks": 1,
                "success_probability": 50,
            }
        ],
        "recommended_plan": [
            {"step_number": 1, "action": "Act", "owner": "Me", "estimated_time_days": 2}
        ],
        "scenarios": {"best": "b", "expected": "e", "worst": "w"},
        "stakeholder_messages": [
            {"stakeholder": "Team", "channel": "email", "tone": "neutral", "message": "Hi"}
        ],
        "metrics": [{"metric_name": "m", "target": "t", "measure_frequency": "weekly"}],
        "processing_notes": None,
    }


class TestExtractJSON:
    @pytest.mark.parametrize("value", [
        {"a": 1, "b": [1, 2, {"c": None}]},
        [{"id": "q1", "question": "Why?"}],
        "plain string",
        42,
        [],
    ])
    def test_fenced_block_returns_value(self, value):
        raw = "```json\n" + json.dumps(value) + "\n```"
        assert extract_json(raw) == value

    def test_untagged_fence(self):
        raw = "Here you go:\n```\n{\"x\": true}\n```\nThanks!"
        assert extract_json(raw) == {"x": True}

    def test_object_surrounded_by_prose(self):
        raw = 'Sure! {"title": "Plan", "n": 3} Hope this helps.'
        assert extract_json(raw) == {"title": "Plan", "n": 3}

    def test_array_surrounded_by_prose(self):
        raw = 'Questions: [{"id": "q1", "question": "Budget?"}] done'
        assert extract_json(raw) == [{"id": "q1", "question": "Budget?"}]

    def test_array_containing_objects_uses_outer_brackets(self):
        raw = '[{"id": "q1"}, {"id": "q2"}]'
        assert extract_json(raw) == [{"id": "q1"}, {"id": "q2"}]

    def test_whole_text_scalar(self):
        assert extract_json("  17 ") == 17

    def test_invalid_fence_falls_back_to_bracket_span(self):
        raw = '```json\nnot json\n``` but later {"ok": 1}'
        assert extract_json(raw) == {"ok": 1}

    def test_no_json_raises_parse_error(self):
        with pytest.raises(LLMJSONError) as exc:
            extract_json("I cannot help with that.")
        assert exc.value.kind == "parse"
        assert exc.value.raw_text == "I cannot help with that."

    def test_expected_object_skips_earlier_brackets(self):
        raw = 'Step [1]: here is the package {"title": "x"}'
        assert extract_json(raw, expect="{") == {"title": "x"}

    def test_expected_array_skips_earlier_braces(self):
        raw = 'Questions for {your team}:\n[{"id": "q1", "question": "Budget?"}]'
        assert extract_json(raw, expect="[") == [{"id": "q1", "question": "Budget?"}]

    def test_expected_bracket_missing_falls_back_to_whole_text(self):
        with pytest.raises(LLMJSONError):
            extract_json('only an object {"a": 1}', expect="[")

    def test_greedy_span_misfires_on_multiple_fragments(self):
        # Known limitation of the first-{ to last-} heuristic.
        with pytest.raises(LLMJSONError):
            JSONOutputGuard.extract('first {"a": 1} and then {"b": 2}')


class TestValidateDecisionPackage:
    def test_accepts_minimal_package(self):
        assert validate_decision_package(_minimal_package()) is True

    @pytest.mark.parametrize("missing", [
        "title", "headline", "summary", "options", "recommended_plan",
        "scenarios", "stakeholder_messages", "metrics",
    ])
    def test_rejects_missing_top_level_field(self, missing):
        pkg = _minimal_package()
        del pkg[missing]
        assert validate_decision_package(pkg) is False

    @pytest.mark.parametrize("scenario", ["best", "expected", "worst"])
    def test_rejects_missing_scenario(self, scenario):
        pkg = _minimal_package()
        del pkg["scenarios"][scenario]
        assert validate_decision_package(pkg) is False

    @pytest.mark.parametrize("field,value", [
        ("id", ""),
        ("title", None),
        ("description", ""),
        ("pros", "not a list"),
        ("cons", None),
        ("success_probability", "65"),
        ("success_probability", True),
    ])
    def test_rejects_bad_option(self, field, value):
        pkg = _minimal_package()
        pkg["options"][0][field] = value
        assert validate_decision_package(pkg) is False

    @pytest.mark.parametrize("probability", [-5, 150, 0, 100, 33.3])
    def test_success_probability_range_is_not_checked(self, probability):
        pkg = _minimal_package()
        pkg["options"][0]["success_probability"] = probability
        assert validate_decision_package(pkg) is True

    @pytest.mark.parametrize("value", [None, [], "text", 3, {}])
    def test_rejects_non_objects(self, value):
        assert validate_decision_package(value) is False

    def test_does_not_mutate_input(self):
        pkg = _minimal_package()
        before = copy.deepcopy(pkg)
        validate_decision_package(pkg)
        assert pkg == before
