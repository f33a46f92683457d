"""Recipe suggestions from the current inventory."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Sequence
from typing import TYPE_CHECKING

from .errors import EmptyGenerationError
from .models import DietaryFilter, GroceryItem

if TYPE_CHECKING:
    from .proxy_client import ProxyClient

logger = logging.getLogger(__name__)

# A top-level recipe heading: "## Title" at the start of a line
_HEADING_RE = re.compile(r"^##[ \t]+", re.MULTILINE)
_HEADING = "## "

_PROMPT = """\
Given the following ingredients from my fridge, listed from soonest to latest \
expiry: {ingredients}.

I want {count} detailed recipe suggestions that:
- Prioritize ingredients that will expire soon.
- Fit these dietary filters: {filters}.
- Format the response in clean Markdown:
  - Use H2 headings (##) for each recipe title
  - Bold section titles like **Ingredients:** and **Instructions:**
  - Bullet lists for ingredients
  - Numbered steps for instructions

Please avoid extra text outside the recipes."""


def build_recipe_prompt(
    item_names: Sequence[str],
    filters: Sequence[DietaryFilter],
    count: int = 3,
) -> str:
    filter_text = ", ".join(f.value for f in filters) if filters else "any"
    return _PROMPT.format(
        ingredients=", ".join(item_names),
        count=count,
        filters=filter_text,
    )


def split_recipes(text: object) -> list[str]:
    """Split a Markdown answer into one block per ``## `` heading.

    Text before the first heading is dropped and each block keeps its
    heading marker.

    Raises:
        EmptyGenerationError: *text* is empty, not a string, or has no
            top-level heading.
    """
    if not isinstance(text, str) or not text.strip():
        raise EmptyGenerationError("Empty response from AI.")

    sections = _HEADING_RE.split(text)
    # sections[0] is whatever preceded the first heading
    blocks = [
        _HEADING + section.strip()
        for section in sections[1:]
        if section.strip()
    ]
    if not blocks:
        raise EmptyGenerationError("The AI response contained no recipes.")
    return blocks


class RecipeSuggester:
    """Asks the model for recipes that use up the fridge."""

    def __init__(self, client: ProxyClient, count: int = 3) -> None:
        self._client = client
        self._count = count

    async def suggest(
        self,
        items: Sequence[GroceryItem],
        filters: Sequence[DietaryFilter] = (),
        *,
        cancel: asyncio.Event | None = None,
    ) -> list[str]:
        """Return recipe blocks for *items* (expected in expiry order)."""
        names = [item.name for item in items]
        if not names:
            raise EmptyGenerationError("There are no items in the fridge to cook with.")

        prompt = build_recipe_prompt(names, filters, count=self._count)
        answer = await self._client.generate(prompt, cancel=cancel)
        recipes = split_recipes(answer)
        if len(recipes) != self._count:
            logger.info(
                "Asked for %d recipes, model returned %d", self._count, len(recipes)
            )
        return recipes
