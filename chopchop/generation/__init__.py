"""Text generation backend base class and factory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..config import AppConfig

# Gemini-style request contents: [{"role": ..., "parts": [{"text": ...}]}]
Contents = list[dict[str, Any]]


class GenerationBackend(ABC):
    """Abstract base for the remote model behind the generation proxy."""

    name: str = ""

    @abstractmethod
    async def generate(self, contents: Contents) -> str:
        """Send *contents* to the model and return its text answer.

        Returns an empty string when the model produced no text.

        Raises:
            UpstreamError: The remote call failed.
        """
        ...


def contents_to_text(contents: Contents) -> str:
    """Flatten the text parts of a contents list into one prompt."""
    chunks: list[str] = []
    for content in contents:
        for part in content.get("parts", []):
            text = part.get("text")
            if text:
                chunks.append(text)
    return "\n\n".join(chunks)


def create_backend(config: AppConfig) -> GenerationBackend:
    """Create a generation backend based on configuration."""
    backend_name = config.generation.backend

    match backend_name:
        case "gemini":
            from .gemini import GeminiBackend

            return GeminiBackend(
                api_key=config.generation.gemini.api_key,
                model=config.generation.gemini.model,
            )
        case "claude":
            from .claude import ClaudeBackend

            return ClaudeBackend(
                api_key=config.generation.claude.api_key,
                model=config.generation.claude.model,
            )
        case _:
            raise ValueError(
                f"Unknown generation backend: {backend_name!r} "
                f"(choose gemini or claude)"
            )
