"""
Token counting and usage tracking.

Wraps the usage counters reported by the chat-completion API.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class UsageRecord:
    """Token usage reported for a single completion request.

    Contains exact token counts as returned by the provider, without
    estimation or model-specific logic.
    """
    prompt_tokens: int
    completion_tokens: int
    total_tokens: Optional[int] = None

    def __post_init__(self):
        """Validate token counts are non-negative."""
        if self.prompt_tokens < 0:
            raise ValueError("prompt_tokens must be >= 0")
        if self.completion_tokens < 0:
            raise ValueError("completion_tokens must be >= 0")
        if self.total_tokens is not None and self.total_tokens < 0:
            raise ValueError("total_tokens must be >= 0")

    @property
    def total(self) -> int:
        """Total tokens used; a missing or zero reported total falls back to prompt + completion."""
        if self.total_tokens:
            return self.total_tokens
        return self.prompt_tokens + self.completion_tokens

    @classmethod
    def from_api(cls, usage: Any) -> "UsageRecord":
        """Build a record from a usage mapping or SDK usage object.

        Missing prompt/completion counts read as 0.
        """
        if isinstance(usage, dict):
            get = usage.get
        else:
            def get(key):
                return getattr(usage, key, None)

        return cls(
            prompt_tokens=get("prompt_tokens") or 0,
            completion_tokens=get("completion_tokens") or 0,
            total_tokens=get("total_tokens"),
        )

    def to_dict(self) -> Dict[str, int]:
        """Render in the provider's snake_case shape."""
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total,
        }
