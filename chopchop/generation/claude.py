"""Claude API generation backend."""

from __future__ import annotations

import logging

from ..errors import UpstreamError
from . import Contents, GenerationBackend, contents_to_text

logger = logging.getLogger(__name__)


class ClaudeBackend(GenerationBackend):
    """Generate text with Anthropic's Claude."""

    name = "claude"

    def __init__(
        self, api_key: str = "", model: str = "claude-sonnet-4-5-20250929"
    ) -> None:
        self._api_key = api_key
        self._model = model

    async def generate(self, contents: Contents) -> str:
        if not self._api_key:
            raise ValueError(
                "Anthropic API key is not configured. "
                "Check the config file or the ANTHROPIC_API_KEY environment variable."
            )

        try:
            import anthropic
        except ImportError:
            raise ImportError(
                "anthropic SDK is required: pip install anthropic"
            ) from None

        client = anthropic.AsyncAnthropic(api_key=self._api_key)
        try:
            response = await client.messages.create(
                model=self._model,
                max_tokens=4096,
                messages=[{"role": "user", "content": contents_to_text(contents)}],
            )
        except Exception as e:
            status = getattr(e, "status_code", None)
            logger.warning("Claude request failed (status=%s): %s", status, e)
            raise UpstreamError(
                "Claude API error",
                status=status if isinstance(status, int) else None,
                detail=str(e),
            ) from e

        if not response.content:
            return ""
        return response.content[0].text
