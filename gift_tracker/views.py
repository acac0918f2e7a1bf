"""Build gift display dicts for the HTML overview."""

from datetime import datetime

from .codec import UNKNOWN_MARK, UNLIMITED_MARK
from .helpers import format_time, relative_time
from .history import NO_DATA, UNCHANGED, TrackedItem


def _stock_label(stock) -> str:
    if stock == UNKNOWN_MARK:
        return "unknown"
    if stock == UNLIMITED_MARK:
        return "unlimited"
    if stock in (NO_DATA, UNCHANGED):
        return stock
    return f"{stock:,}" if isinstance(stock, int) else f"{stock:g}"


def build_row(item: TrackedItem, now: datetime | None = None) -> dict:
    """Display dict for one gift. Call with the catalogue lock held."""
    price_changed = item.last_price_change_at()
    stock_changed = item.last_stock_change_at()
    previous_price = item.previous_price()
    current_price = item.current_price()
    discounted = (
        previous_price not in (NO_DATA, UNCHANGED)
        and current_price != NO_DATA
        and int(current_price) < int(previous_price)
    )
    return {
        "name": item.name,
        "category": item.category,
        "url": item.identifier,
        "created": format_time(item.created_at),
        "price": current_price,
        "previous_price": previous_price,
        "discounted": discounted,
        "price_changed": format_time(price_changed),
        "price_changed_relative": relative_time(price_changed, now),
        "stock": _stock_label(item.current_stock()),
        "previous_stock": _stock_label(item.previous_stock()),
        "stock_changed": format_time(stock_changed),
        "stock_changed_relative": relative_time(stock_changed, now),
        "states": len(item.history),
    }


def build_rows(items: list[TrackedItem], now: datetime | None = None) -> list[dict]:
    """Rows sorted by category, then name."""
    rows = [build_row(item, now) for item in items]
    rows.sort(key=lambda r: (r["category"].lower(), r["name"].lower()))
    return rows
