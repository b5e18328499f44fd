"""
Text-generation client used by the insight generator.

The pipeline only needs one capability: send a prompt plus a system prompt
and get parsed JSON back. Anything that implements ``ask_structured`` can
stand in for the Anthropic client (tests use a fake).
"""

import json
import logging
import os
import re
from typing import Any, Protocol

import anthropic

logger = logging.getLogger(__name__)

DEFAULT_MODEL = os.environ.get("LIFEOS_INSIGHT_MODEL", "claude-3-5-haiku-latest")
DEFAULT_MAX_TOKENS = 1024

_JSON_START = re.compile(r"[\[{]")


class InsightParseError(ValueError):
    """Raised when a model response contains no parseable JSON."""


class TextClient(Protocol):
    async def ask_structured(self, prompt: str, system_prompt: str) -> Any: ...


def extract_json(text: str) -> Any:
    """
    Pull the first JSON array or object out of a model response.

    Raises:
        InsightParseError: if nothing in the text parses as JSON
    """
    text = (text or "").strip()
    decoder = json.JSONDecoder()
    for match in _JSON_START.finditer(text):
        try:
            value, _ = decoder.raw_decode(text, match.start())
        except json.JSONDecodeError:
            continue
        return value

    raise InsightParseError(f"No JSON found in response: {text[:120]!r}")


class AnthropicTextClient:
    """``ask_structured`` backed by the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ):
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        self.model = model
        self.max_tokens = max_tokens
        self._client: anthropic.AsyncAnthropic | None = None

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            if not self.api_key:
                raise RuntimeError("ANTHROPIC_API_KEY is not set")
            self._client = anthropic.AsyncAnthropic(api_key=self.api_key)
        return self._client

    async def ask_structured(self, prompt: str, system_prompt: str) -> Any:
        """Send the prompt and return the parsed JSON payload."""
        client = self._get_client()
        response = await client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=system_prompt,
            messages=[{"role": "user", "content": prompt}],
        )
        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        logger.debug(f"Model {self.model} returned {len(text)} chars")
        return extract_json(text)
