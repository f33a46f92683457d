"""Session state and the user-action handlers that update it.

Each handler takes a :class:`Session` and returns a new one. Errors raised
by the pipeline are caught here and turned into ``Session.error`` text, so
callers only ever need to render the returned session.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from .errors import ChopChopError
from .materialize import materialize_manual, utcnow
from .models import DietaryFilter, ExtractedEntry, GroceryItem

if TYPE_CHECKING:
    from .db import InventoryDB
    from .ocr import ProgressCallback
    from .pipeline import ReceiptScanner
    from .recipes import RecipeSuggester

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    items: tuple[GroceryItem, ...] = ()  # last loaded snapshot
    filters: tuple[DietaryFilter, ...] = ()  # in selection order
    search: str = ""
    editing_id: int | None = None
    recipes: tuple[str, ...] = ()
    scanned: tuple[ExtractedEntry, ...] = ()
    message: str = ""
    error: str = ""

    def visible_items(self) -> list[GroceryItem]:
        """Items whose name contains the search term, case-insensitively."""
        term = self.search.strip().lower()
        if not term:
            return list(self.items)
        return [item for item in self.items if term in item.name.lower()]


def _fresh(session: Session) -> Session:
    return replace(session, message="", error="")


def _failed(session: Session, action: str, error: Exception) -> Session:
    logger.warning("%s failed: %s", action, error)
    return replace(session, error=str(error) or f"{action} failed.")


def refresh(session: Session, store: InventoryDB) -> Session:
    """Reload the snapshot. On failure the previous snapshot stays."""
    session = _fresh(session)
    try:
        items = store.list_items()
    except ChopChopError as e:
        return _failed(session, "Loading items", e)
    return replace(session, items=tuple(items))


def toggle_filter(session: Session, dietary_filter: DietaryFilter) -> Session:
    if dietary_filter in session.filters:
        filters = tuple(f for f in session.filters if f != dietary_filter)
    else:
        filters = session.filters + (dietary_filter,)
    return replace(session, filters=filters)


def set_search(session: Session, term: str) -> Session:
    return replace(session, search=term)


def add_item(
    session: Session,
    store: InventoryDB,
    name: str,
    *,
    expires_at: datetime | None = None,
    perish_in_days: int | None = None,
) -> Session:
    """Add one item by hand, with an expiry date or a day count."""
    session = _fresh(session)
    if not name.strip() or (expires_at is None and perish_in_days is None):
        return replace(session, error="Fill both fields!")

    try:
        item = materialize_manual(
            name, expires_at=expires_at, perish_in_days=perish_in_days or 0
        )
    except ValueError as e:
        return replace(session, error=str(e))
    try:
        store.add_item(item)
    except ChopChopError as e:
        return _failed(session, "Adding item", e)
    return replace(refresh(session, store), message=f"Added {item.name}.")


def delete_item(session: Session, store: InventoryDB, item_id: int) -> Session:
    session = _fresh(session)
    try:
        store.delete_item(item_id)
    except ChopChopError as e:
        return _failed(session, "Deleting item", e)
    return refresh(session, store)


def begin_edit(session: Session, item_id: int) -> Session:
    return replace(_fresh(session), editing_id=item_id)


def cancel_edit(session: Session) -> Session:
    return replace(session, editing_id=None)


def save_edit(
    session: Session, store: InventoryDB, expires_at: datetime | None
) -> Session:
    """Store a new expiry for the item being edited."""
    session = _fresh(session)
    if session.editing_id is None:
        return replace(session, error="No item is being edited.")
    if expires_at is None:
        return replace(session, error="Please select a new date.")
    try:
        store.update_expiry(session.editing_id, expires_at)
    except ChopChopError as e:
        return _failed(session, "Updating expiry", e)
    return refresh(replace(session, editing_id=None), store)


def clear_expired(
    session: Session, store: InventoryDB, now: datetime | None = None
) -> Session:
    """Delete the expired items of the loaded snapshot only."""
    session = _fresh(session)
    try:
        ids = store.clear_expired(list(session.items), now or utcnow())
    except ChopChopError as e:
        return _failed(session, "Clearing expired items", e)
    if not ids:
        return replace(session, message="No expired items to clear.")
    refreshed = refresh(session, store)
    return replace(refreshed, message=f"Cleared {len(ids)} expired item(s).")


async def scan_receipt(
    session: Session,
    scanner: ReceiptScanner,
    image: str | Path | bytes,
    on_progress: ProgressCallback | None = None,
    *,
    cancel: asyncio.Event | None = None,
    ocr_timeout: float | None = None,
) -> Session:
    session = replace(_fresh(session), scanned=())
    try:
        result = await scanner.scan(
            image, on_progress, cancel=cancel, ocr_timeout=ocr_timeout
        )
    except ChopChopError as e:
        return _failed(session, "Scan", e)

    session = replace(session, scanned=tuple(result.entries))
    if not result.entries:
        return replace(session, message="No grocery items found on the receipt.")
    return replace(
        session,
        items=tuple(sorted(
            session.items + tuple(result.items),
            key=lambda i: (i.expires_at is None, i.expires_at or i.added_at, i.id or 0),
        )),
        message=f"Added {len(result.items)} item(s) from the receipt.",
    )


async def generate_recipes(
    session: Session,
    suggester: RecipeSuggester,
    *,
    cancel: asyncio.Event | None = None,
) -> Session:
    """Replace the recipe list. On failure no partial list is kept."""
    session = replace(_fresh(session), recipes=())
    try:
        recipes = await suggester.suggest(
            list(session.items), session.filters, cancel=cancel
        )
    except ChopChopError as e:
        return _failed(session, "Generating recipes", e)
    return replace(session, recipes=tuple(recipes))
