"""Display row tests."""

from datetime import datetime, timedelta, timezone

from gift_tracker.codec import UNKNOWN, Quantity
from gift_tracker.history import StateSnapshot, TrackedItem
from gift_tracker.views import build_row, build_rows

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def _gift(name="Pohár", category="Trofeje", states=()) -> TrackedItem:
    gift = TrackedItem(name, category, f"https://a.test/{name}", NOW - timedelta(days=3))
    gift.history.extend(StateSnapshot(p, c, ts) for p, c, ts in states)
    return gift


def test_row_for_discounted_gift():
    gift = _gift(states=[
        (1200, Quantity.number(1500), NOW - timedelta(hours=5)),
        (900, UNKNOWN, NOW - timedelta(hours=2)),
    ])
    row = build_row(gift, NOW)
    assert row["price"] == "900"
    assert row["previous_price"] == "1200"
    assert row["discounted"] is True
    assert row["stock"] == "unknown"
    assert row["previous_stock"] == "1,500"
    assert row["price_changed_relative"] == "2h ago"
    assert row["states"] == 2


def test_row_without_history():
    row = build_row(_gift(), NOW)
    assert row["price"] == "-"
    assert row["stock"] == "-"
    assert row["discounted"] is False
    assert row["price_changed"] == "never"


def test_rows_sorted_by_category_then_name():
    rows = build_rows([_gift("b", "Y"), _gift("a", "Y"), _gift("z", "X")], NOW)
    assert [(r["category"], r["name"]) for r in rows] == [("X", "z"), ("Y", "a"), ("Y", "b")]
