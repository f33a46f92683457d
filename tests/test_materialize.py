"""Tests for turning extracted entries into inventory rows."""

from datetime import datetime, timedelta, timezone

import pytest

from chopchop.extraction import parse_extraction_response
from chopchop.materialize import materialize, materialize_manual
from chopchop.models import MAX_PERISH_DAYS, ExtractedEntry, GroceryItem, Urgency

NOW = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize("days", [0, 1, 5, 30, 365])
def test_expiry_is_added_plus_days(days):
    [item] = materialize([ExtractedEntry("Apple", days)], now=NOW)
    assert item.added_at == NOW
    assert item.expires_at - item.added_at == timedelta(days=days)
    assert item.id is None


def test_negative_days_is_already_expired():
    [item] = materialize([ExtractedEntry("Old fish", -2)], now=NOW)
    assert item.expires_at == NOW - timedelta(days=2)
    assert item.is_expired(NOW)


def test_missing_or_non_numeric_days_expire_now():
    entries = parse_extraction_response(
        '[{"item": "Rice"}, {"item": "Beans", "perish_in_days": "soon"}]'
    )
    items = materialize(entries, now=NOW)
    assert [i.expires_at for i in items] == [NOW, NOW]


def test_batch_shares_added_at():
    items = materialize(
        [ExtractedEntry("A", 1), ExtractedEntry("B", 2)], now=NOW
    )
    assert {i.added_at for i in items} == {NOW}
    assert [i.name for i in items] == ["A", "B"]


def test_materialize_defaults_to_utc_now():
    [item] = materialize([ExtractedEntry("Tea", 0)])
    assert item.added_at.tzinfo is not None
    assert item.expires_at == item.added_at


def test_materialize_manual_with_days():
    item = materialize_manual("  tofu ", perish_in_days=4, now=NOW)
    assert item.name == "tofu"
    assert item.expires_at == NOW + timedelta(days=4)


def test_materialize_manual_with_date():
    expires = datetime(2025, 3, 9, tzinfo=timezone.utc)
    item = materialize_manual("tofu", expires_at=expires, perish_in_days=99, now=NOW)
    assert item.expires_at == expires
    assert item.added_at == NOW


def test_materialize_manual_rejects_blank_name():
    with pytest.raises(ValueError, match="name"):
        materialize_manual("   ", perish_in_days=1)


@pytest.mark.parametrize("days", [MAX_PERISH_DAYS + 1, -MAX_PERISH_DAYS - 1, 10**10])
def test_materialize_rejects_out_of_range_days(days):
    with pytest.raises(ValueError, match="between"):
        materialize([ExtractedEntry("Salt", 1), ExtractedEntry("Rice", days)], now=NOW)


def test_materialize_manual_rejects_out_of_range_days():
    with pytest.raises(ValueError, match="between"):
        materialize_manual("Salt", perish_in_days=99_999_999, now=NOW)


class TestGroceryItemHelpers:
    def test_days_left_rounds_up(self):
        [item] = materialize([ExtractedEntry("Kale", 3)], now=NOW)
        assert item.days_left(NOW) == 3
        assert item.days_left(NOW + timedelta(hours=1)) == 3
        assert item.days_left(NOW + timedelta(days=3)) == 0
        assert item.days_left(NOW + timedelta(days=4)) == -1

    def test_no_expiry(self):
        item = materialize([ExtractedEntry("Salt", 0)], now=NOW)[0]
        item = type(item)(name="Salt", added_at=NOW, expires_at=None)
        assert item.days_left(NOW) is None
        assert not item.is_expired(NOW)

    @pytest.mark.parametrize(
        "days, expected",
        [
            (-1, Urgency.EXPIRED),
            (0, Urgency.USE_NOW),
            (2, Urgency.USE_NOW),
            (3, Urgency.USE_SOON),
            (5, Urgency.USE_SOON),
            (6, Urgency.FRESH),
        ],
    )
    def test_urgency_groups(self, days, expected):
        [item] = materialize([ExtractedEntry("Kale", days)], now=NOW)
        assert item.urgency(NOW) is expected

    def test_urgency_without_expiry(self):
        item = GroceryItem(name="Salt", added_at=NOW, expires_at=None)
        assert item.urgency(NOW) is Urgency.UNKNOWN
