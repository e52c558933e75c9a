"""
Pricing calculations and rate management.

Resolves per-token prices for a model and computes the cost of a
completion from its token usage.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional, Tuple

from .catalog import PricingCatalog
from .token_counter import UsageRecord

logger = logging.getLogger(__name__)

TOKENS_PER_MILLION = 1_000_000
DEFAULT_PRICING_KEY = "default"


class PriceSource(Enum):
    """Which resolution step produced the per-token prices."""
    CATALOG = "catalog"
    FALLBACK = "fallback"
    PATTERN = "pattern"
    DEFAULT = "default"


@dataclass(frozen=True)
class ModelPricing:
    """Published pricing for a specific model."""
    input_cost_per_million: float  # USD per 1M prompt tokens
    output_cost_per_million: float  # USD per 1M completion tokens

    @property
    def input_cost_per_token(self) -> float:
        return self.input_cost_per_million / TOKENS_PER_MILLION

    @property
    def output_cost_per_token(self) -> float:
        return self.output_cost_per_million / TOKENS_PER_MILLION


# Declaration order matters: substring matching takes the first key found
# in the model id, so gpt-4o must precede gpt-4.
FALLBACK_PRICING: Dict[str, ModelPricing] = {
    "gpt-4o": ModelPricing(input_cost_per_million=2.50, output_cost_per_million=10.00),
    "gpt-4o-mini": ModelPricing(input_cost_per_million=0.15, output_cost_per_million=0.60),
    "gpt-4-turbo": ModelPricing(input_cost_per_million=10.00, output_cost_per_million=30.00),
    "gpt-4": ModelPricing(input_cost_per_million=30.00, output_cost_per_million=60.00),
    DEFAULT_PRICING_KEY: ModelPricing(input_cost_per_million=5.00, output_cost_per_million=15.00),
}


@dataclass(frozen=True)
class CostBreakdown:
    """Cost of one completion, split into prompt and completion parts."""
    input_cost: float
    output_cost: float
    total_cost: float
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    price_source: PriceSource
    elapsed_ms: float = 0.0
    elapsed_seconds: float = 0.0

    def with_elapsed(self, elapsed_ms: float) -> "CostBreakdown":
        """Return a copy carrying the wall-clock time of the request."""
        return replace(self, elapsed_ms=elapsed_ms, elapsed_seconds=elapsed_ms / 1000)

    def to_dict(self) -> Dict[str, float]:
        return {
            "inputCost": self.input_cost,
            "outputCost": self.output_cost,
            "totalCost": self.total_cost,
            "promptTokens": self.prompt_tokens,
            "completionTokens": self.completion_tokens,
            "totalTokens": self.total_tokens,
            "elapsedMs": self.elapsed_ms,
            "elapsedSeconds": self.elapsed_seconds,
        }


def _match_fallback(model: str) -> Tuple[ModelPricing, PriceSource]:
    named = {k: v for k, v in FALLBACK_PRICING.items() if k != DEFAULT_PRICING_KEY}

    if model in named:
        return named[model], PriceSource.FALLBACK

    model_lower = model.lower()
    for key, pricing in named.items():
        if key.lower() in model_lower:
            return pricing, PriceSource.PATTERN

    logger.warning("No fallback pricing matches model %s, using default pricing", model)
    return FALLBACK_PRICING[DEFAULT_PRICING_KEY], PriceSource.DEFAULT


def resolve_pricing(
    model: str,
    catalog: Optional[PricingCatalog] = None,
) -> Tuple[float, float, PriceSource]:
    """Resolve per-token input and output prices for a model.

    Tries, in order: the catalog entry for the exact model id, the
    built-in table entry for the exact id, the first built-in key that
    is a substring of the lowercased id, and finally the default entry.

    Args:
        model: Model identifier
        catalog: Loaded pricing catalog, or None for fallback mode

    Returns:
        Tuple of (input cost per token, output cost per token, source)
    """
    if catalog is not None:
        entry = catalog.lookup(model)
        if entry is not None:
            return entry.input_cost_per_token, entry.output_cost_per_token, PriceSource.CATALOG

    logger.warning("Model %s not found in pricing catalog, using fallback pricing", model)
    pricing, source = _match_fallback(model)
    return pricing.input_cost_per_token, pricing.output_cost_per_token, source


def calculate_cost(
    model: str,
    usage: UsageRecord,
    catalog: Optional[PricingCatalog] = None,
) -> CostBreakdown:
    """Calculate the cost of a completion from its token usage.

    No rounding is applied; display code decides precision.

    Args:
        model: Model identifier
        usage: Token usage reported by the provider
        catalog: Loaded pricing catalog, or None for fallback mode

    Returns:
        CostBreakdown with input, output and total cost in USD
    """
    input_per_token, output_per_token, source = resolve_pricing(model, catalog)

    input_cost = usage.prompt_tokens * input_per_token
    output_cost = usage.completion_tokens * output_per_token

    return CostBreakdown(
        input_cost=input_cost,
        output_cost=output_cost,
        total_cost=input_cost + output_cost,
        prompt_tokens=usage.prompt_tokens,
        completion_tokens=usage.completion_tokens,
        total_tokens=usage.total,
        price_source=source,
    )
