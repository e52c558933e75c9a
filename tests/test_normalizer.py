"""
Unit tests for response normalization.

Tests brace-span extraction, lenient parsing and the text fallback.
"""

import json
import logging

import pytest

from connections_solver.core.errors import MalformedSolution
from connections_solver.core.normalizer import (
    GroupSolution,
    SolutionResult,
    extract_json_span,
    normalize_response,
    parse_solution,
)
from connections_solver.core.pricing import calculate_cost
from connections_solver.core.token_counter import UsageRecord

SOLUTION = {
    "groups": [
        {"theme": "Fish", "words": ["BASS", "PIKE", "SOLE", "CARP"], "explanation": "Types of fish"},
        {"theme": "Keys", "words": ["SHIFT", "ENTER", "TAB", "ESCAPE"], "explanation": "Keyboard keys"},
        {"theme": "Planets", "words": ["MARS", "VENUS", "EARTH", "SATURN"]},
        {"theme": "___ball", "words": ["FOOT", "BASKET", "HAND", "BASE"], "explanation": "Add 'ball'"},
    ]
}


class TestExtractJsonSpan:
    """Test greedy brace-span extraction."""

    def test_first_open_to_last_close(self):
        """Verify the span runs from the first '{' to the last '}'."""
        assert extract_json_span('pre {"a": {"b": 1}} post') == '{"a": {"b": 1}}'

    def test_greedy_across_separate_objects(self):
        """Verify two objects are captured as one span."""
        assert extract_json_span('{"a": 1} and {"b": 2}') == '{"a": 1} and {"b": 2}'

    def test_no_braces(self):
        """Verify None without any braces."""
        assert extract_json_span("no json here") is None

    def test_close_before_open(self):
        """Verify None when the only '}' precedes the '{'."""
        assert extract_json_span("} then {") is None


class TestParseSolution:
    """Test parsing of grouping documents."""

    def test_groups_parsed(self):
        """Verify group fields are read."""
        groups = parse_solution(json.dumps(SOLUTION))
        assert groups[0] == GroupSolution("Fish", ["BASS", "PIKE", "SOLE", "CARP"], "Types of fish")
        assert groups[2].explanation is None

    def test_missing_groups_key(self):
        """Verify an object without groups is malformed."""
        with pytest.raises(MalformedSolution, match="no 'groups' list"):
            parse_solution('{"answer": "unknown"}')

    def test_non_object_group(self):
        """Verify scalar group entries are malformed."""
        with pytest.raises(MalformedSolution, match="must be an object"):
            parse_solution('{"groups": ["BASS PIKE SOLE CARP"]}')

    def test_lenient_group_fields(self):
        """Verify missing fields default and words are coerced to strings."""
        groups = parse_solution('{"groups": [{"words": [1, "TWO"]}, {"theme": "Empty"}]}')
        assert groups == [
            GroupSolution(theme="", words=["1", "TWO"]),
            GroupSolution(theme="Empty", words=[]),
        ]


class TestNormalizeResponse:
    """Test the normalize_response entry point."""

    def test_solution_inside_prose(self):
        """Verify an embedded 4x4 solution becomes a grouped result."""
        text = "Here is my answer:\n```json\n" + json.dumps(SOLUTION, indent=2) + "\n```\nGood luck!"
        result = normalize_response(text)

        assert result.is_grouped
        assert result.text_response is None
        assert len(result.groups) == 4
        assert result.word_count == 16

    def test_shape_not_validated(self):
        """Verify counts other than 4x4 are accepted as-is."""
        result = normalize_response('{"groups": [{"theme": "T", "words": ["A", "B"]}]}')
        assert result.is_grouped
        assert result.word_count == 2

    def test_plain_text_verbatim(self):
        """Verify text without braces is returned unchanged."""
        text = "  I cannot read this image clearly.\n"
        result = normalize_response(text)

        assert not result.is_grouped
        assert result.groups is None
        assert result.text_response == text

    def test_truncated_json_falls_back(self):
        """Verify unparseable braces fall back to text instead of raising."""
        text = '{"groups": [{"theme": "Fish", "words": ["BASS", "PIKE"]}, {"theme": "Ke}'
        result = normalize_response(text)
        assert result.text_response == text

    def test_stray_braces_fall_back(self):
        """Verify prose braces around a valid object defeat the greedy span."""
        text = "Use {braces} like " + json.dumps(SOLUTION)
        result = normalize_response(text)
        assert result.text_response == text

    def test_wrong_shape_falls_back(self, caplog):
        """Verify a parseable object of the wrong shape falls back with a warning."""
        with caplog.at_level(logging.WARNING, logger="connections_solver.core.normalizer"):
            result = normalize_response('Answer: {"words": ["A", "B"]}')
        assert result.text_response == 'Answer: {"words": ["A", "B"]}'
        assert "Could not parse JSON" in caplog.text


class TestSolutionResultToDict:
    """Test rendering of the caller-facing result object."""

    def test_grouped_without_usage(self):
        """Verify usage and cost keys are omitted, not zeroed."""
        result = SolutionResult(
            groups=[GroupSolution("Fish", ["BASS"], None)],
            model="gpt-4o",
            finish_reason="stop",
            elapsed_ms=12.5,
        )
        assert result.to_dict() == {
            "groups": [{"theme": "Fish", "words": ["BASS"]}],
            "model": "gpt-4o",
            "finishReason": "stop",
            "elapsedMs": 12.5,
        }

    def test_text_with_usage(self):
        """Verify text results carry usage and cost when present."""
        usage = UsageRecord(prompt_tokens=10, completion_tokens=5)
        result = SolutionResult(
            text_response="plain",
            usage=usage,
            cost=calculate_cost("gpt-4o", usage),
            model="gpt-4o",
            finish_reason="stop",
            elapsed_ms=1.0,
        )
        data = result.to_dict()
        assert data["textResponse"] == "plain"
        assert "groups" not in data
        assert data["usage"] == {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15}
        assert data["cost"]["totalTokens"] == 15
