"""
Vision chat-completion client.

Sends a puzzle image to the chat-completions API and turns the reply
into a priced solution.
"""

import logging
import time
from dataclasses import replace
from typing import Any, Dict, List, Optional

import httpx
from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from ..core.catalog import (
    DEFAULT_PRICING_SOURCE,
    PricingCatalog,
    SourceReader,
    load_pricing_catalog,
)
from ..core.errors import ApiRequestFailed, EmptyResponse, TruncatedResponse
from ..core.normalizer import SolutionResult, normalize_response
from ..core.pricing import calculate_cost
from ..core.token_counter import UsageRecord

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o"
DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_TIMEOUT = 60.0

DEFAULT_PROMPT = """You are looking at a Connections game puzzle. This is a word puzzle where you need to group 16 words or phrases into 4 groups of 4, where each group shares a common theme or connection.

Please analyze the image and:
1. Identify all 16 words/phrases in the puzzle
2. Group them into 4 categories of 4 words each
3. Explain the theme/connection for each group
4. Present your answer in a clear, structured format

Format your response as a JSON object with this structure:
{
  "groups": [
    {
      "theme": "Theme description",
      "words": ["word1", "word2", "word3", "word4"],
      "explanation": "Brief explanation of the connection"
    }
  ]
}

Make sure each word appears in exactly one group, and that there are exactly 4 groups with 4 words each."""


def build_messages(image_data: str, prompt: Optional[str] = None) -> List[Dict[str, Any]]:
    """Build the single user turn carrying the instructions and the image."""
    return [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": prompt or DEFAULT_PROMPT},
                {"type": "image_url", "image_url": {"url": image_data}},
            ],
        }
    ]


def _status_error_message(error: APIStatusError) -> str:
    # The SDK unwraps {"error": {...}} into error.body
    body = error.body
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"API request failed with status {error.status_code}"


class ConnectionsSolver:
    """Client that solves Connections puzzles from images.

    Holds the pricing catalog for its own lifetime; the catalog is
    read-only once loaded and may be shared by concurrent calls.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
        catalog: Optional[PricingCatalog] = None,
    ):
        """Initialize the solver.

        Args:
            base_url: Chat-completions API base URL
            timeout: Request timeout in seconds
            http_client: Transport handed to the OpenAI SDK (optional)
            catalog: Pre-loaded pricing catalog (optional)

        Raises:
            ValueError: If base_url is empty or timeout is not positive
        """
        if not base_url or not base_url.strip():
            raise ValueError("base_url is required and cannot be empty")
        if timeout <= 0:
            raise ValueError("timeout must be > 0")

        self.base_url = base_url
        self.timeout = timeout
        self.http_client = http_client
        self.model_prices = catalog
        self._prices_loaded = catalog is not None

    def load_model_prices(
        self,
        source: str = DEFAULT_PRICING_SOURCE,
        force: bool = False,
        reader: Optional[SourceReader] = None,
    ) -> Optional[PricingCatalog]:
        """Load the pricing catalog once for this client.

        Later calls return the cached result unless ``force`` is set.
        A failed load leaves the client in fallback pricing mode.
        """
        if self._prices_loaded and not force:
            return self.model_prices

        self.model_prices = load_pricing_catalog(source, reader=reader)
        self._prices_loaded = True
        return self.model_prices

    def _client(self, api_key: str) -> AsyncOpenAI:
        return AsyncOpenAI(
            api_key=api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
            http_client=self.http_client,
        )

    async def solve(
        self,
        api_key: str,
        image_data: str,
        model: str = DEFAULT_MODEL,
        prompt: Optional[str] = None,
    ) -> SolutionResult:
        """Ask the model to solve the puzzle in an image.

        Makes exactly one request; retry policy belongs to the caller.

        Args:
            api_key: Provider API key (sent as a bearer token)
            image_data: Data URI or URL of the puzzle image
            model: Vision-capable model id
            prompt: Instruction text replacing the default prompt (optional)

        Returns:
            SolutionResult with usage, cost and timing attached

        Raises:
            ValueError: If api_key, image_data or model is empty
            ApiRequestFailed: If the request fails or returns an error status
            TruncatedResponse: If the model hit its token limit with no content
            EmptyResponse: If the model returned no content for another reason
        """
        if not api_key or not api_key.strip():
            raise ValueError("api_key is required and cannot be empty")
        if not image_data:
            raise ValueError("image_data is required and cannot be empty")
        if not model or not model.strip():
            raise ValueError("model is required and cannot be empty")

        start = time.perf_counter()

        messages = build_messages(image_data, prompt)
        logger.debug("Requesting completion from %s with model %s", self.base_url, model)

        client = self._client(api_key)
        try:
            response = await client.chat.completions.create(
                model=model,
                messages=messages,
            )
        except APIStatusError as e:
            raise ApiRequestFailed(_status_error_message(e), status_code=e.status_code) from e
        except APIConnectionError as e:
            raise ApiRequestFailed(f"API request failed: {e}") from e
        finally:
            # An injected transport belongs to the caller
            if self.http_client is None:
                await client.close()

        if not response.choices:
            raise EmptyResponse(None)

        choice = response.choices[0]
        content = choice.message.content
        finish_reason = choice.finish_reason
        usage = response.usage

        if not content or not content.strip():
            if finish_reason == "length":
                raise TruncatedResponse()
            raise EmptyResponse(finish_reason)

        result = normalize_response(content)

        elapsed_ms = (time.perf_counter() - start) * 1000

        usage_record = None
        cost = None
        if usage is not None:
            usage_record = UsageRecord.from_api(usage)
            cost = calculate_cost(model, usage_record, self.model_prices).with_elapsed(elapsed_ms)

        logger.info("Completion from %s finished (%s) in %.0f ms", model, finish_reason, elapsed_ms)

        return replace(
            result,
            usage=usage_record,
            cost=cost,
            model=model,
            finish_reason=finish_reason,
            elapsed_ms=elapsed_ms,
        )
