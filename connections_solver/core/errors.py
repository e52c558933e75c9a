"""
Error taxonomy for the solver.

Only request, truncation and empty-content failures reach callers;
pricing and parsing problems degrade to fallback behaviour.
"""

from typing import Optional


class SolverError(Exception):
    """Base class for all solver errors."""


class PricingLoadFailed(SolverError):
    """Pricing document could not be read or parsed."""


class MalformedSolution(SolverError):
    """Model text did not contain a parseable grouping document."""


class ApiRequestFailed(SolverError):
    """The chat-completion request failed at the HTTP or transport level."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TruncatedResponse(SolverError):
    """The model hit its token limit before producing any content."""

    def __init__(self, message: str = "Model ran out of tokens before completing the response."):
        super().__init__(message)


class EmptyResponse(SolverError):
    """The model returned blank content for a reason other than length."""

    def __init__(self, finish_reason: Optional[str]):
        super().__init__(f"Received empty response from API. Finish reason: {finish_reason}")
        self.finish_reason = finish_reason
