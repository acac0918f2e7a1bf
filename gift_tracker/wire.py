"""JSON wire schema shared by /gifts.json and the bootstrap document.

Schema (list of gifts, catalogue order):
    [
        {
            "name": "Zlatý pohár",
            "category": "Poháry",
            "url": "https://www.alik.cz/...",
            "createdAt": 1697580000,
            "history": [
                {"price": 100, "count": 5, "time": 1697580600},
                {"price": 80, "count": "?", "time": 1697581200}
            ]
        }
    ]

Times are epoch seconds (JS Date friendly after * 1000).
"""

from .catalogue import Catalogue
from .codec import from_wire, to_wire
from .helpers import epoch_seconds, from_epoch
from .history import StateSnapshot, TrackedItem


def state_to_wire(state: StateSnapshot) -> dict:
    return {
        "price": state.price,
        "count": to_wire(state.quantity),
        "time": epoch_seconds(state.observed_at),
    }


def _price_from_wire(value) -> int:
    """Prices are whole minor units; anything else is malformed."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"invalid price: {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"non-integral price: {value!r}")
    return int(value)


def state_from_wire(data: dict) -> StateSnapshot:
    return StateSnapshot(
        price=_price_from_wire(data.get("price", 0)),
        quantity=from_wire(data.get("count", 0)),
        observed_at=from_epoch(data.get("time", 0)),
    )


def item_to_wire(item: TrackedItem) -> dict:
    return {
        "name": item.name,
        "category": item.category,
        "url": item.identifier,
        "createdAt": epoch_seconds(item.created_at),
        "history": [state_to_wire(s) for s in item.history],
    }


def item_from_wire(data: dict) -> TrackedItem:
    """Build a TrackedItem from its wire dict. Raises KeyError without a url."""
    return TrackedItem(
        name=data.get("name", ""),
        category=data.get("category", ""),
        identifier=data["url"],
        created_at=from_epoch(data.get("createdAt", 0)),
        history=[state_from_wire(s) for s in data.get("history") or []],
    )


def items_to_wire(items) -> list[dict]:
    return [item_to_wire(item) for item in items]


def catalogue_to_wire(catalogue: Catalogue) -> list[dict]:
    """Serialise the whole catalogue under its lock."""
    with catalogue.lock:
        return items_to_wire(catalogue.items())
