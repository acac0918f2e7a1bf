"""Gift change history — append-only list of observed states per gift.

Each TrackedItem keeps every distinct state it was seen in, oldest first:

    [
        StateSnapshot(price=100, quantity=5,   observed_at=10:00),
        StateSnapshot(price=80,  quantity=5,   observed_at=10:20),
        StateSnapshot(price=80,  quantity=∞,   observed_at=11:40),
    ]

A new observation is only appended when it differs from the last recorded
state (see TrackedItem.record). Entries are never removed or modified.
"""

import logging
import operator
from dataclasses import dataclass, field
from datetime import datetime

from .codec import Quantity, to_wire

log = logging.getLogger(__name__)

NO_DATA = "-"
UNCHANGED = "same"


@dataclass(frozen=True)
class StateSnapshot:
    """One observed {price, quantity, time} triple."""
    price: int
    quantity: Quantity
    observed_at: datetime


def _price(state: StateSnapshot) -> int:
    return state.price


def _stock(state: StateSnapshot):
    return to_wire(state.quantity)


@dataclass(eq=False)
class TrackedItem:
    """A catalogue gift. `identifier` (the gift URL) is its identity."""
    name: str
    category: str
    identifier: str
    created_at: datetime
    history: list[StateSnapshot] = field(default_factory=list)

    def record(self, state: StateSnapshot) -> bool:
        """Append `state` if it differs from the last recorded state.

        A price change is always recorded. A quantity change is recorded only
        when both the old and the new quantity are known: "?" means the feed
        did not report stock this time, so flapping between "?" and a number
        doesn't count. Unlimited equals Unlimited.

        Returns True if the state was appended.
        """
        if not self.history:
            self.history.append(state)
            return True

        prev = self.history[-1]
        if state.observed_at < prev.observed_at:
            log.warning(
                f"Ignoring out-of-order state for {self.identifier}: "
                f"{state.observed_at.isoformat()} < {prev.observed_at.isoformat()}"
            )
            return False

        changed = prev.price != state.price
        if (
            prev.quantity != state.quantity
            and not prev.quantity.is_unknown
            and not state.quantity.is_unknown
        ):
            changed = True

        if changed:
            self.history.append(state)
        return changed

    # ── Derived facts (backward scans from the newest entry) ──

    def _previous_value(self, project, same=operator.eq):
        """First value before the current one that differs from it.

        NO_DATA with fewer than two entries, UNCHANGED if every entry matches.
        """
        if len(self.history) < 2:
            return NO_DATA
        current = project(self.history[-1])
        for state in reversed(self.history[:-1]):
            value = project(state)
            if not same(value, current):
                return value
        return UNCHANGED

    def _last_change_at(self, project, same=operator.eq) -> datetime | None:
        """Time of the newest entry that differs from its predecessor, or None (never)."""
        for i in range(len(self.history) - 1, 0, -1):
            if not same(project(self.history[i]), project(self.history[i - 1])):
                return self.history[i].observed_at
        return None

    def current_price(self) -> str:
        if not self.history:
            return NO_DATA
        return str(self.history[-1].price)

    def previous_price(self) -> str:
        value = self._previous_value(_price)
        return value if value in (NO_DATA, UNCHANGED) else str(value)

    def last_price_change_at(self) -> datetime | None:
        return self._last_change_at(_price)

    def current_stock(self):
        """Current count in wire form (number, "?" or "∞"); NO_DATA if never seen."""
        if not self.history:
            return NO_DATA
        return _stock(self.history[-1])

    def previous_stock(self):
        return self._previous_value(_stock)

    def last_stock_change_at(self) -> datetime | None:
        return self._last_change_at(_stock)
