"""ChopChop: receipt scanning, fridge inventory and recipe suggestions."""

from .config import AppConfig, load_config
from .db import InventoryDB
from .errors import (
    ChopChopError,
    EmptyGenerationError,
    ExtractionParseError,
    OcrError,
    OperationCancelled,
    StoreError,
    UpstreamError,
)
from .extraction import GroceryExtractor, parse_extraction_response
from .materialize import materialize
from .models import DietaryFilter, ExtractedEntry, GroceryItem, Urgency
from .ocr import OcrExtractor
from .pipeline import ReceiptScanner, ScanResult
from .proxy_client import ProxyClient
from .recipes import RecipeSuggester, split_recipes
from .session import Session

__all__ = [
    "AppConfig",
    "load_config",
    "InventoryDB",
    "ChopChopError",
    "EmptyGenerationError",
    "ExtractionParseError",
    "OcrError",
    "OperationCancelled",
    "StoreError",
    "UpstreamError",
    "GroceryExtractor",
    "parse_extraction_response",
    "materialize",
    "DietaryFilter",
    "ExtractedEntry",
    "GroceryItem",
    "Urgency",
    "OcrExtractor",
    "ReceiptScanner",
    "ScanResult",
    "ProxyClient",
    "RecipeSuggester",
    "split_recipes",
    "Session",
]
