"""
Pricing catalog loading.

Reads per-token model prices from a JSON document on disk or over HTTP.
A missing or broken document is not an error: callers fall back to the
built-in pricing table.
"""

import json
import logging
from dataclasses import dataclass
from types import MappingProxyType
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

import httpx

from .errors import PricingLoadFailed

logger = logging.getLogger(__name__)

DEFAULT_PRICING_SOURCE = "./model_prices.json"

# Reads the raw text of a pricing source (path or URL)
SourceReader = Callable[[str], str]


@dataclass(frozen=True)
class PriceEntry:
    """Per-token prices for one model as published in the catalog."""
    model_id: str
    input_cost_per_token: Optional[float]
    output_cost_per_token: Optional[float]

    @property
    def is_complete(self) -> bool:
        """Both prices are known."""
        return self.input_cost_per_token is not None and self.output_cost_per_token is not None


@dataclass(frozen=True)
class PricingCatalog:
    """Immutable mapping of model id to catalog prices."""
    entries: Mapping[str, PriceEntry]

    def __post_init__(self):
        # Copy into a read-only view so the loaded catalog cannot change
        object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, model_id: str) -> bool:
        return model_id in self.entries

    def lookup(self, model_id: str) -> Optional[PriceEntry]:
        """Get the entry for an exact model id, only if both prices are set."""
        entry = self.entries.get(model_id)
        if entry is None or not entry.is_complete:
            return None
        return entry

    @classmethod
    def from_document(cls, document: Any) -> "PricingCatalog":
        """Build a catalog from a decoded pricing document.

        Raises:
            PricingLoadFailed: If the document is not a JSON object
        """
        if not isinstance(document, dict):
            raise PricingLoadFailed("Pricing document must be a JSON object")

        entries: Dict[str, PriceEntry] = {}
        for model_id, data in document.items():
            if not isinstance(data, dict):
                continue
            entries[model_id] = PriceEntry(
                model_id=model_id,
                input_cost_per_token=_as_price(data.get("input_cost_per_token")),
                output_cost_per_token=_as_price(data.get("output_cost_per_token")),
            )
        return cls(entries=entries)


def _as_price(value: Any) -> Optional[float]:
    # bool is an int subclass; a flag is never a price
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def read_source(source: str) -> str:
    """Read a pricing source from an http(s) URL or the local filesystem."""
    if source.startswith(("http://", "https://")):
        response = httpx.get(source, follow_redirects=True)
        response.raise_for_status()
        return response.text
    return Path(source).read_text(encoding="utf-8")


def load_pricing_catalog(
    source: str = DEFAULT_PRICING_SOURCE,
    reader: Optional[SourceReader] = None,
) -> Optional[PricingCatalog]:
    """Load model prices from a JSON document.

    Args:
        source: File path or http(s) URL of the pricing document
        reader: Callable returning the raw document text (defaults to read_source)

    Returns:
        PricingCatalog, or None if the document could not be loaded
    """
    read = reader or read_source
    try:
        try:
            raw = read(source)
            document = json.loads(raw)
        except (OSError, httpx.HTTPError, ValueError) as e:
            raise PricingLoadFailed(f"Could not load model prices from {source}: {e}") from e
        catalog = PricingCatalog.from_document(document)
    except PricingLoadFailed as e:
        logger.warning("%s; using fallback pricing", e)
        return None

    logger.info("Model prices loaded successfully (%d models)", len(catalog))
    return catalog
