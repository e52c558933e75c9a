"""
Response normalization.

Turns the free text returned by the model into a grouping solution,
degrading to the raw text when no usable JSON document is present.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .errors import MalformedSolution
from .pricing import CostBreakdown
from .token_counter import UsageRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroupSolution:
    """One group of related words and the theme connecting them."""
    theme: str
    words: List[str]
    explanation: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"theme": self.theme, "words": list(self.words)}
        if self.explanation is not None:
            data["explanation"] = self.explanation
        return data


@dataclass(frozen=True)
class SolutionResult:
    """Solution returned to callers.

    Exactly one of ``groups`` (structured answer) or ``text_response``
    (plain-text fallback) is set. Usage and cost are None when the
    provider reported no usage.
    """
    groups: Optional[List[GroupSolution]] = None
    text_response: Optional[str] = None
    usage: Optional[UsageRecord] = None
    cost: Optional[CostBreakdown] = None
    model: Optional[str] = None
    finish_reason: Optional[str] = None
    elapsed_ms: Optional[float] = None

    @property
    def is_grouped(self) -> bool:
        return self.groups is not None

    @property
    def word_count(self) -> int:
        """Number of words across all groups."""
        if self.groups is None:
            return 0
        return sum(len(group.words) for group in self.groups)

    def to_dict(self) -> Dict[str, Any]:
        """Render the caller-facing result object."""
        data: Dict[str, Any] = {}
        if self.groups is not None:
            data["groups"] = [group.to_dict() for group in self.groups]
        else:
            data["textResponse"] = self.text_response
        if self.usage is not None:
            data["usage"] = self.usage.to_dict()
        if self.cost is not None:
            data["cost"] = self.cost.to_dict()
        data["model"] = self.model
        data["finishReason"] = self.finish_reason
        data["elapsedMs"] = self.elapsed_ms
        return data


def extract_json_span(text: str) -> Optional[str]:
    """Return the text from the first '{' to the last '}', if any.

    Greedy on purpose; this is not a balanced-brace scanner.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return None
    return text[start:end + 1]


def _parse_group(data: Any) -> GroupSolution:
    if not isinstance(data, dict):
        raise MalformedSolution(f"Group entry must be an object, got {type(data).__name__}")

    words = data.get("words") or []
    if not isinstance(words, list):
        raise MalformedSolution("Group 'words' must be a list")

    explanation = data.get("explanation")
    return GroupSolution(
        theme=str(data.get("theme") or ""),
        words=[str(word) for word in words],
        explanation=None if explanation is None else str(explanation),
    )


def parse_solution(text: str) -> List[GroupSolution]:
    """Parse the grouping document embedded in model text.

    Raises:
        MalformedSolution: If no JSON object with a 'groups' list is found
    """
    span = extract_json_span(text)
    if span is None:
        raise MalformedSolution("No JSON object found in response")

    try:
        document = json.loads(span)
    except ValueError as e:
        raise MalformedSolution(f"Invalid JSON in response: {e}") from e

    if not isinstance(document, dict):
        raise MalformedSolution("Response JSON must be an object")

    groups = document.get("groups")
    if not isinstance(groups, list):
        raise MalformedSolution("Response JSON has no 'groups' list")

    return [_parse_group(group) for group in groups]


def normalize_response(raw_text: str) -> SolutionResult:
    """Normalize model output into a grouped or plain-text result.

    Never raises: anything that is not a parseable grouping document
    becomes a text response holding ``raw_text`` verbatim.
    """
    try:
        groups = parse_solution(raw_text)
    except MalformedSolution as e:
        logger.warning("Could not parse JSON, using text response: %s", e)
        return SolutionResult(text_response=raw_text)

    return SolutionResult(groups=groups)
