"""Time-windowed views over gift history.

    filter_added          gifts created within the window
    filter_discounted     gifts now cheaper than some state seen in the window
    filter_stock_changed  gifts whose count differs from some state seen in the window

Windows are inclusive: [now - duration, now]. `duration` is a timedelta or a
duration string such as "24h" or "1h30m".
"""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from .catalogue import Catalogue
from .codec import same_count
from .helpers import parse_duration
from .history import StateSnapshot, TrackedItem

StateChange = Callable[[StateSnapshot, StateSnapshot], bool]


def _window(duration: str | timedelta, now: datetime | None) -> tuple[datetime, datetime]:
    now = now or datetime.now(timezone.utc)
    return now - parse_duration(duration), now


def filter_added(catalogue: Catalogue, duration: str | timedelta, now: datetime | None = None) -> list[TrackedItem]:
    start, end = _window(duration, now)
    with catalogue.lock:
        return [item for item in catalogue.items() if start <= item.created_at <= end]


def filter_state_change(
    catalogue: Catalogue,
    changed: StateChange,
    duration: str | timedelta,
    now: datetime | None = None,
) -> list[TrackedItem]:
    """Gifts whose newest state `changed` against any earlier state in the window.

    `changed(current, before)` is called with the newest entry and each older
    entry observed inside the window. Gifts with a single entry never match.
    """
    start, end = _window(duration, now)
    result = []
    with catalogue.lock:
        for item in catalogue.items():
            if len(item.history) < 2:
                continue
            current = item.history[-1]
            for before in reversed(item.history[:-1]):
                if start <= before.observed_at <= end and changed(current, before):
                    result.append(item)
                    break
    return result


def _discounted(current: StateSnapshot, before: StateSnapshot) -> bool:
    return before.price > current.price


def _stock_changed(current: StateSnapshot, before: StateSnapshot) -> bool:
    return not same_count(before.quantity, current.quantity)


def filter_discounted(catalogue: Catalogue, duration: str | timedelta, now: datetime | None = None) -> list[TrackedItem]:
    return filter_state_change(catalogue, _discounted, duration, now)


def filter_stock_changed(catalogue: Catalogue, duration: str | timedelta, now: datetime | None = None) -> list[TrackedItem]:
    return filter_state_change(catalogue, _stock_changed, duration, now)
