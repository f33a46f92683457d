"""HTTP client for the generation proxy."""

from __future__ import annotations

import asyncio
import logging

import httpx

from .deadline import guarded
from .errors import UpstreamError

logger = logging.getLogger(__name__)


class ProxyClient:
    """Sends prompts to the ChopChop generation proxy.

    The proxy holds the model credential; this client only knows its URL.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport

    async def generate(
        self, prompt: str, *, cancel: asyncio.Event | None = None
    ) -> str:
        """Ask the model behind the proxy to answer *prompt*.

        Raises:
            UpstreamError: The proxy or the model failed, or timed out.
            OperationCancelled: *cancel* was set before the answer arrived.
        """
        body = {"contents": [{"parts": [{"text": prompt}]}]}

        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            try:
                response = await guarded(
                    client.post(self._url, json=body), cancel=cancel
                )
            except httpx.TimeoutException as e:
                raise UpstreamError("The model request timed out.") from e
            except httpx.HTTPError as e:
                raise UpstreamError(f"Could not reach the generation proxy: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(
                "Generation proxy returned a non-JSON response.",
                status=response.status_code,
                detail=response.text,
            ) from e

        if response.status_code != 200:
            message = "Generation failed"
            if isinstance(data, dict) and data.get("error"):
                message = str(data["error"])
            logger.warning(
                "Proxy returned %d: %s", response.status_code, data
            )
            raise UpstreamError(
                message,
                status=response.status_code,
                detail=data.get("details") if isinstance(data, dict) else data,
            )

        return _response_text(data)


def _response_text(data: object) -> str:
    """Pull the answer out of a proxy body or a raw Gemini response."""
    if not isinstance(data, dict):
        return ""
    text = data.get("text")
    if isinstance(text, str) and text:
        return text
    try:
        return data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return ""
