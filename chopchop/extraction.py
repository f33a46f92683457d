"""Grocery extraction: receipt text -> structured entries via the model."""

from __future__ import annotations

import asyncio
import json
import logging
import math
import re
from typing import TYPE_CHECKING, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictStr,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from .errors import ExtractionParseError
from .models import MAX_PERISH_DAYS, ExtractedEntry

if TYPE_CHECKING:
    from .proxy_client import ProxyClient

logger = logging.getLogger(__name__)

_PROMPT = """\
Extract a deduplicated list of generic grocery items from this receipt text.
For each item, estimate perish days. Add a relevant emoji before each item name
if appropriate; otherwise none. Return only a JSON array like
[{{"item": "🍞 Bread", "perish_in_days": 5}}].

Receipt:
{receipt}"""

_FENCE_RE = re.compile(r"```[A-Za-z0-9_-]*")


def build_extraction_prompt(receipt_text: str) -> str:
    return _PROMPT.format(receipt=receipt_text)


def strip_code_fences(text: str) -> str:
    """Remove Markdown code-fence markers such as ```json and ```."""
    return _FENCE_RE.sub("", text.strip()).strip()


def coerce_perish_days(value: Any) -> int:
    """Whole days from a loosely typed model value; 0 when not numeric."""
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return 0
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        return int(value)
    return 0


class _EntryPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    item: StrictStr = Field(validation_alias=AliasChoices("item", "name"))
    perish_in_days: int = Field(
        default=0, ge=-MAX_PERISH_DAYS, le=MAX_PERISH_DAYS
    )

    @field_validator("item")
    @classmethod
    def _label_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("item label is blank")
        return v

    @field_validator("perish_in_days", mode="before")
    @classmethod
    def _coerce_days(cls, v: Any) -> int:
        return coerce_perish_days(v)


_ENTRIES = TypeAdapter(list[_EntryPayload])


def parse_extraction_response(text: str) -> list[ExtractedEntry]:
    """Parse the model's JSON array of grocery items.

    The answer may be wrapped in code fences. Anything that is not an array
    of objects with a non-blank string label is rejected as a whole.

    Raises:
        ExtractionParseError: The answer does not have the expected shape.
    """
    if not isinstance(text, str) or not text.strip():
        raise ExtractionParseError("The model returned no grocery list.")

    cleaned = strip_code_fences(text)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ExtractionParseError(
            f"The grocery list is not valid JSON: {e.msg}"
        ) from e

    try:
        rows = _ENTRIES.validate_python(payload)
    except ValidationError as e:
        raise ExtractionParseError(
            f"The grocery list has an unexpected shape ({e.error_count()} problem(s))."
        ) from e

    return [
        ExtractedEntry(item_label=row.item, perish_in_days=row.perish_in_days)
        for row in rows
    ]


class GroceryExtractor:
    """Turns cleaned receipt text into grocery entries through the proxy."""

    def __init__(self, client: ProxyClient) -> None:
        self._client = client

    async def extract(
        self, receipt_text: str, *, cancel: asyncio.Event | None = None
    ) -> list[ExtractedEntry]:
        if not receipt_text or not receipt_text.strip():
            raise ValueError("receipt text is empty; nothing to extract")

        answer = await self._client.generate(
            build_extraction_prompt(receipt_text), cancel=cancel
        )
        entries = parse_extraction_response(answer)
        logger.info("Extracted %d grocery entries", len(entries))
        return entries
