"""Conversion of extracted entries into inventory rows."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from .models import MAX_PERISH_DAYS, ExtractedEntry, GroceryItem


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _check_days(days: int) -> None:
    if not -MAX_PERISH_DAYS <= days <= MAX_PERISH_DAYS:
        raise ValueError(
            f"Days until it perishes must be between {-MAX_PERISH_DAYS} "
            f"and {MAX_PERISH_DAYS}, got {days}."
        )


def materialize(
    entries: list[ExtractedEntry], now: datetime | None = None
) -> list[GroceryItem]:
    """Build unsaved GroceryItems for a scanned batch.

    The whole batch shares one ``added_at``; each item expires
    ``perish_in_days`` days after it. Negative day counts give items that
    are already expired.

    Raises:
        ValueError: A day count is outside +/- ``MAX_PERISH_DAYS``.
    """
    if now is None:
        now = utcnow()
    for entry in entries:
        _check_days(entry.perish_in_days)
    return [
        GroceryItem(
            name=entry.item_label,
            added_at=now,
            expires_at=now + timedelta(days=entry.perish_in_days),
        )
        for entry in entries
    ]


def materialize_manual(
    name: str,
    *,
    expires_at: datetime | None = None,
    perish_in_days: int = 0,
    now: datetime | None = None,
) -> GroceryItem:
    """Build a single manually entered item.

    An explicit *expires_at* wins over *perish_in_days*.
    """
    name = name.strip()
    if not name:
        raise ValueError("Item name is required.")
    if now is None:
        now = utcnow()
    if expires_at is None:
        return materialize([ExtractedEntry(name, perish_in_days)], now=now)[0]
    return GroceryItem(name=name, added_at=now, expires_at=expires_at)
