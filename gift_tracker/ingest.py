"""Ingest a batch of feed rows into the catalogue.

Row layout (fixed column order, header already removed):
    category, name, price, count, created (YYYY-MM-DD), url

Parsing is best-effort: a malformed cell falls back to a default value and
is counted in IngestReport.degraded, the rest of the batch goes on.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from .catalogue import Catalogue
from .codec import ZERO, try_parse_count
from .helpers import EPOCH
from .history import StateSnapshot, TrackedItem

log = logging.getLogger(__name__)

# Column order of the feed
CATEGORY, NAME, PRICE, COUNT, CREATED, URL = range(6)
COLUMNS = 6


@dataclass
class IngestReport:
    """Outcome of one ingestion batch."""
    changed: bool = False
    rows: int = 0
    created: int = 0
    recorded: int = 0
    degraded: int = 0
    skipped: int = 0


def _parse_price(raw: str) -> int | None:
    try:
        return int(raw.strip())
    except ValueError:
        return None


def _parse_date(raw: str) -> datetime | None:
    try:
        return datetime.strptime(raw.strip(), "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def ingest(catalogue: Catalogue, rows: Iterable[Sequence[str]], timestamp: datetime) -> IngestReport:
    """Record one observation per row, creating gifts on first sight.

    `timestamp` is the rounded refresh time shared by every row of the batch.
    The whole batch runs under the catalogue lock so readers never see a
    half-applied refresh.
    """
    report = IngestReport()

    with catalogue.lock:
        for line in rows:
            report.rows += 1
            if len(line) < COLUMNS or not line[URL].strip():
                report.skipped += 1
                log.warning(f"Skipping malformed row {report.rows}: {list(line)!r}")
                continue

            url = line[URL].strip()
            price = _parse_price(line[PRICE])
            count = try_parse_count(line[COUNT])
            if price is None:
                report.degraded += 1
                price = 0
            if count is None:
                report.degraded += 1
                count = ZERO

            gift = catalogue.find(url)
            if gift is None:
                created = _parse_date(line[CREATED])
                if created is None:
                    report.degraded += 1
                    created = EPOCH
                gift = TrackedItem(
                    name=line[NAME],
                    category=line[CATEGORY],
                    identifier=url,
                    created_at=created,
                )
                catalogue.insert(gift)
                report.created += 1

            if gift.record(StateSnapshot(price, count, timestamp)):
                report.recorded += 1
                report.changed = True

    if report.degraded:
        log.warning(f"Ingest: {report.degraded} malformed field(s) replaced with defaults")
    log.info(
        f"Ingest: {report.rows} row(s), {report.created} new gift(s), "
        f"{report.recorded} state change(s)"
    )
    return report
