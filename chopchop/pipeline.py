"""Receipt scan pipeline: OCR -> cleanup -> extraction -> inventory."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from .deadline import check_cancelled
from .errors import ExtractionParseError, OcrError
from .materialize import materialize, utcnow
from .models import ExtractedEntry, GroceryItem
from .normalize import normalize_receipt_text

if TYPE_CHECKING:
    from .db import InventoryDB
    from .extraction import GroceryExtractor
    from .ocr import OcrExtractor, ProgressCallback

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    entries: list[ExtractedEntry] = field(default_factory=list)
    items: list[GroceryItem] = field(default_factory=list)  # as stored, with ids


class ReceiptScanner:
    """Runs one receipt photo through to new inventory rows."""

    def __init__(
        self,
        ocr: OcrExtractor,
        extractor: GroceryExtractor,
        store: InventoryDB,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._ocr = ocr
        self._extractor = extractor
        self._store = store
        self._clock = clock

    async def scan(
        self,
        image: str | Path | bytes,
        on_progress: ProgressCallback | None = None,
        *,
        cancel: asyncio.Event | None = None,
        ocr_timeout: float | None = None,
    ) -> ScanResult:
        """Scan a receipt and store the groceries found on it.

        Any failure aborts the scan; rows are only written once every
        earlier step has succeeded, and then as a single batch.
        """
        raw = await self._ocr.recognize(
            image, on_progress, timeout=ocr_timeout, cancel=cancel
        )
        text = normalize_receipt_text(raw)
        if not text:
            raise OcrError("No readable text found on the receipt.")

        check_cancelled(cancel)
        entries = await self._extractor.extract(text, cancel=cancel)
        if not entries:
            logger.info("No grocery items found on the receipt")
            return ScanResult()

        check_cancelled(cancel)
        try:
            items = materialize(entries, now=self._clock())
        except ValueError as e:
            raise ExtractionParseError(str(e)) from e
        ids = self._store.add_items(items)
        stored = [replace(item, id=item_id) for item, item_id in zip(items, ids)]
        logger.info("Scan added %d item(s) to the fridge", len(stored))
        return ScanResult(entries=entries, items=stored)
