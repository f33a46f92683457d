"""Exception taxonomy shared by the scan and recipe pipelines."""

from __future__ import annotations


class ChopChopError(Exception):
    """Base class for errors that are shown to the user."""


class OcrError(ChopChopError):
    """No usable text could be recovered from the receipt image."""


class ExtractionParseError(ChopChopError):
    """The model's grocery list was not in the expected structured shape."""


class EmptyGenerationError(ChopChopError):
    """Recipe generation produced no recipe sections."""


class StoreError(ChopChopError):
    """A create/read/update/delete against the inventory store failed."""


class UpstreamError(ChopChopError):
    """The remote model call failed or returned a non-success status."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        detail: object = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.detail = detail


class OperationCancelled(ChopChopError):
    """The caller cancelled a running scan or generation."""
