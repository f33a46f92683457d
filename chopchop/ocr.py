"""Receipt OCR using Tesseract."""

from __future__ import annotations

import asyncio
import io
import logging
from collections.abc import Callable
from pathlib import Path

from .deadline import check_cancelled, guarded
from .errors import OcrError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]

# Progress fractions reported after each stage
_STAGE_DECODED = 0.25
_STAGE_PREPROCESSED = 0.5


class _ProgressReporter:
    """Forwards clamped, non-decreasing progress fractions to a callback."""

    def __init__(
        self,
        callback: ProgressCallback | None,
        cancel: asyncio.Event | None,
    ) -> None:
        self._callback = callback
        self._cancel = cancel
        self._last = 0.0
        self._started = False

    def __call__(self, fraction: float) -> None:
        check_cancelled(self._cancel)
        fraction = min(max(fraction, 0.0), 1.0)
        if self._started and fraction < self._last:
            return
        self._started = True
        self._last = fraction
        if self._callback is not None:
            self._callback(fraction)


class OcrExtractor:
    """Extract raw text from a receipt photo with Tesseract."""

    def __init__(self, lang: str = "eng", tesseract_cmd: str = "") -> None:
        self._lang = lang
        self._tesseract_cmd = tesseract_cmd

    async def recognize(
        self,
        image: str | Path | bytes,
        on_progress: ProgressCallback | None = None,
        *,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> str:
        """Run OCR over *image* and return the recognized text.

        Args:
            image: Path to an image file, or the raw image bytes.
            on_progress: Called with fractions in [0, 1] as work advances.
            timeout: Seconds to wait for recognition before giving up.
            cancel: Set to abort between stages.

        Raises:
            OcrError: The image is unreadable or no text was recognized.
            OperationCancelled: *cancel* was set.
        """
        try:
            import pytesseract
            from PIL import Image, ImageOps, UnidentifiedImageError
        except ImportError:
            raise ImportError(
                "pytesseract and Pillow are required: pip install pytesseract Pillow"
            ) from None

        if self._tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self._tesseract_cmd

        report = _ProgressReporter(on_progress, cancel)
        report(0.0)

        try:
            if isinstance(image, bytes):
                img = Image.open(io.BytesIO(image))
            else:
                img = Image.open(Path(image))
            img.load()
        except (UnidentifiedImageError, OSError) as e:
            raise OcrError(f"Could not read receipt image: {e}") from e
        report(_STAGE_DECODED)

        img = ImageOps.autocontrast(ImageOps.grayscale(img))
        report(_STAGE_PREPROCESSED)

        try:
            text = await guarded(
                asyncio.to_thread(
                    pytesseract.image_to_string, img, lang=self._lang
                ),
                timeout=timeout,
                cancel=cancel,
            )
        except TimeoutError as e:
            raise OcrError("Text recognition timed out.") from e
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as e:
            raise OcrError(f"Text recognition failed: {e}") from e
        report(1.0)

        if not text or not text.strip():
            raise OcrError("No text extracted from the image.")

        logger.info("OCR recognized %d characters", len(text))
        return text
