"""Data models for inventory rows, extracted entries and recipe filters."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

_SECONDS_PER_DAY = 24 * 60 * 60

# Longest shelf life accepted, either way from today (about a century)
MAX_PERISH_DAYS = 36_500


@dataclass(frozen=True)
class GroceryItem:
    """A row of the fridge inventory."""

    name: str  # may start with an emoji
    added_at: datetime
    expires_at: datetime | None
    id: int | None = None  # assigned by the store

    def is_expired(self, now: datetime) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= now

    def days_left(self, now: datetime) -> int | None:
        """Whole days until expiry, rounded up. Negative once expired."""
        if self.expires_at is None:
            return None
        remaining = (self.expires_at - now).total_seconds()
        return math.ceil(remaining / _SECONDS_PER_DAY)

    def urgency(self, now: datetime) -> Urgency:
        days = self.days_left(now)
        if days is None:
            return Urgency.UNKNOWN
        if days < 0:
            return Urgency.EXPIRED
        if days <= 2:
            return Urgency.USE_NOW
        if days <= 5:
            return Urgency.USE_SOON
        return Urgency.FRESH


class Urgency(str, Enum):
    """How soon an item should be used, by days left."""

    EXPIRED = "expired"
    USE_NOW = "use-now"  # 2 days or less
    USE_SOON = "use-soon"  # 5 days or less
    FRESH = "fresh"
    UNKNOWN = "unknown"  # no expiry set


@dataclass(frozen=True)
class ExtractedEntry:
    """A grocery line as returned by the extraction model."""

    item_label: str
    perish_in_days: int = 0


class DietaryFilter(str, Enum):
    VEGETARIAN = "Vegetarian"
    HIGH_PROTEIN = "High Protein"
    CHICKEN_DISHES = "Chicken Dishes"
    HIGH_VEGGIE = "High Veggie"
    LOW_CALORIE = "Low Calorie"

    @classmethod
    def parse(cls, value: str) -> DietaryFilter:
        """Look up a filter by its label, case-insensitively."""
        wanted = value.strip().lower()
        for member in cls:
            if member.value.lower() == wanted or member.name.lower() == wanted:
                return member
        choices = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown dietary filter: {value!r} (choose from {choices})")
