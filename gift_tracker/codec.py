"""Stock count codec.

The feed reports stock as a decimal number, or one of two markers:
    "?"  stock is temporarily not reported (Unknown)
    "∞"  stock is unlimited (Unlimited)

Inside the tracker a count is always a Quantity. Only this module turns a
Quantity into the wire value (number or marker string) and back.
"""

import math
from dataclasses import dataclass
from enum import Enum

UNKNOWN_MARK = "?"
UNLIMITED_MARK = "∞"


class QuantityKind(Enum):
    NUMBER = "number"
    UNKNOWN = "unknown"
    UNLIMITED = "unlimited"


@dataclass(frozen=True)
class Quantity:
    """Stock count: a non-negative number, Unknown or Unlimited.

    Equality only. Unknown == Unknown and Unlimited == Unlimited; numbers
    compare numerically.
    """
    kind: QuantityKind
    value: float = 0.0

    def __post_init__(self):
        # only numbers carry a value
        if self.kind is not QuantityKind.NUMBER:
            object.__setattr__(self, "value", 0.0)

    @classmethod
    def number(cls, value: float) -> "Quantity":
        return cls(QuantityKind.NUMBER, float(value))

    @property
    def is_unknown(self) -> bool:
        return self.kind is QuantityKind.UNKNOWN


UNKNOWN = Quantity(QuantityKind.UNKNOWN)
UNLIMITED = Quantity(QuantityKind.UNLIMITED)
ZERO = Quantity.number(0)


def try_parse_count(raw: str) -> Quantity | None:
    """Parse a raw feed cell. Returns None if the cell is malformed."""
    text = raw.strip()
    if text == UNKNOWN_MARK:
        return UNKNOWN
    if text == UNLIMITED_MARK:
        return UNLIMITED
    try:
        value = float(text)
    except ValueError:
        return None
    # float() also accepts "nan", "inf" and negatives; none is a valid count
    if not math.isfinite(value) or value < 0:
        return None
    return Quantity.number(value)


def parse_count(raw: str) -> Quantity:
    """Parse a raw feed cell, degrading malformed values to zero."""
    parsed = try_parse_count(raw)
    return ZERO if parsed is None else parsed


def to_wire(quantity: Quantity) -> int | float | str:
    """Return the JSON-compatible form: a number, "?" or "∞"."""
    if quantity.kind is QuantityKind.UNKNOWN:
        return UNKNOWN_MARK
    if quantity.kind is QuantityKind.UNLIMITED:
        return UNLIMITED_MARK
    if quantity.value.is_integer():
        return int(quantity.value)
    return quantity.value


def from_wire(value) -> Quantity:
    """Inverse of to_wire().

    Raw NaN/Infinity floats (older dumps stored the count as a bare float)
    map to Unknown/Unlimited. Anything else that isn't a number is zero.
    """
    if value == UNKNOWN_MARK:
        return UNKNOWN
    if value == UNLIMITED_MARK:
        return UNLIMITED
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return ZERO
    if math.isnan(value):
        return UNKNOWN
    if math.isinf(value):
        return UNLIMITED if value > 0 else ZERO
    return Quantity.number(value)


def same_count(a: Quantity, b: Quantity) -> bool:
    """Compare two counts by their wire form (Unknown participates as a value)."""
    return to_wire(a) == to_wire(b)
