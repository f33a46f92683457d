"""Fridge inventory CRUD operations."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

from ..errors import StoreError
from ..materialize import utcnow
from ..models import GroceryItem
from .schema import ensure_schema

logger = logging.getLogger(__name__)


def _to_db(value: datetime | None) -> str | None:
    """UTC ISO-8601 with fixed precision, so text order is time order."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_db(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _row_to_item(row: sqlite3.Row) -> GroceryItem:
    return GroceryItem(
        id=row["id"],
        name=row["item_name"],
        added_at=_from_db(row["added_on"]),
        expires_at=_from_db(row["expires_on"]),
    )


def expired_ids(snapshot: Iterable[GroceryItem], now: datetime) -> list[int]:
    """Ids of the items in *snapshot* whose expiry is at or before *now*."""
    return [
        item.id
        for item in snapshot
        if item.id is not None and item.is_expired(now)
    ]


class InventoryDB:
    """Manages the fridge table."""

    def __init__(self, db_path: str | Path = "~/.config/chopchop/inventory.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def add_items(self, items: list[GroceryItem]) -> list[int]:
        """Insert a batch of items in one transaction.

        Either every row is inserted or none is.

        Returns:
            List of inserted row IDs, in the order of *items*.
        """
        conn = self._get_conn()
        ids: list[int] = []
        try:
            with conn:
                for item in items:
                    cur = conn.execute(
                        """INSERT INTO fridge (item_name, added_on, expires_on)
                           VALUES (?, ?, ?)""",
                        (item.name, _to_db(item.added_at), _to_db(item.expires_at)),
                    )
                    ids.append(cur.lastrowid)
        except sqlite3.Error as e:
            raise StoreError(f"Could not save {len(items)} item(s): {e}") from e
        logger.info("Inserted %d inventory rows", len(ids))
        return ids

    def add_item(self, item: GroceryItem) -> int:
        return self.add_items([item])[0]

    def list_items(self) -> list[GroceryItem]:
        """Return every item, soonest expiry first.

        Rows without an expiry sort last; ties keep insertion order.
        """
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """SELECT id, item_name, added_on, expires_on FROM fridge
                   ORDER BY expires_on IS NULL, expires_on, id"""
            ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Could not load inventory: {e}") from e
        return [_row_to_item(r) for r in rows]

    def update_expiry(self, item_id: int, expires_at: datetime) -> None:
        """Replace the expiry of one item. Name and added_on are untouched."""
        conn = self._get_conn()
        try:
            with conn:
                conn.execute(
                    "UPDATE fridge SET expires_on = ? WHERE id = ?",
                    (_to_db(expires_at), item_id),
                )
        except sqlite3.Error as e:
            raise StoreError(f"Could not update item {item_id}: {e}") from e

    def delete_item(self, item_id: int) -> None:
        """Delete an inventory item by ID. Unknown IDs are ignored."""
        self.delete_items([item_id])

    def delete_items(self, item_ids: list[int]) -> int:
        """Delete the given IDs and return how many rows were removed."""
        if not item_ids:
            return 0
        conn = self._get_conn()
        placeholders = ", ".join("?" for _ in item_ids)
        try:
            with conn:
                cur = conn.execute(
                    f"DELETE FROM fridge WHERE id IN ({placeholders})",
                    list(item_ids),
                )
        except sqlite3.Error as e:
            raise StoreError(f"Could not delete items: {e}") from e
        return cur.rowcount

    def clear_expired(
        self, snapshot: list[GroceryItem], now: datetime | None = None
    ) -> list[int]:
        """Delete the expired items of a loaded snapshot.

        Only ids present in *snapshot* are considered; rows that expired
        since it was loaded are left alone.

        Returns:
            The ids that were expired in the snapshot (empty if none).
        """
        if now is None:
            now = utcnow()
        ids = expired_ids(snapshot, now)
        if ids:
            removed = self.delete_items(ids)
            logger.info("Cleared %d expired item(s) (%d rows removed)", len(ids), removed)
        return ids
