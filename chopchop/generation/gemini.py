"""Gemini API generation backend."""

from __future__ import annotations

import logging

from ..errors import UpstreamError
from . import Contents, GenerationBackend

logger = logging.getLogger(__name__)


class GeminiBackend(GenerationBackend):
    """Generate text with Google Gemini."""

    name = "gemini"

    def __init__(self, api_key: str = "", model: str = "gemini-2.5-flash") -> None:
        self._api_key = api_key
        self._model = model

    async def generate(self, contents: Contents) -> str:
        if not self._api_key:
            raise ValueError(
                "Gemini API key is not configured. "
                "Check the config file or the GEMINI_API_KEY environment variable."
            )

        try:
            import google.generativeai as genai
        except ImportError:
            raise ImportError(
                "google-generativeai SDK is required: pip install google-generativeai"
            ) from None

        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(self._model)

        try:
            response = await model.generate_content_async(contents)
        except Exception as e:
            status = getattr(e, "code", None)
            logger.warning("Gemini request failed (status=%s): %s", status, e)
            raise UpstreamError(
                "Gemini API error",
                status=status if isinstance(status, int) else None,
                detail=str(e),
            ) from e

        try:
            return response.text or ""
        except ValueError:
            # No candidate text (e.g. the answer was blocked)
            return ""
