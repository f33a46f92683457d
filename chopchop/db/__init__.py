"""SQLite storage for the fridge inventory."""

from .inventory import InventoryDB, expired_ids
from .schema import ensure_schema

__all__ = [
    "InventoryDB",
    "ensure_schema",
    "expired_ids",
]
