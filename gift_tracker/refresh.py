"""One refresh cycle: fetch feed → ingest → save if anything changed.

Also the startup bootstrap: restore from disk, and if that leaves the
catalogue empty, run a live refresh straight away.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path

from . import config
from .catalogue import Catalogue
from .feed import FeedError, fetch_feed, parse_feed
from .helpers import round_time
from .http_client import HttpClient
from .ingest import IngestReport, ingest
from .persistence import SnapshotError, restore, save_snapshot

log = logging.getLogger(__name__)


def refresh(
    catalogue: Catalogue,
    timestamp: datetime,
    snapshot_path: Path | None = None,
    url: str | None = None,
) -> IngestReport:
    """Run one ingestion cycle stamped with `timestamp`.

    Raises FeedError if the feed can't be fetched; the catalogue is not
    touched in that case. A failed save is logged and the in-memory state is
    kept.
    """
    snapshot_path = snapshot_path or config.SNAPSHOT_FILE

    with HttpClient() as client:
        text = fetch_feed(client, url)
    rows = parse_feed(text)
    if not rows:
        log.warning("Feed returned no rows")

    report = ingest(catalogue, rows, timestamp)

    if report.changed:
        try:
            save_snapshot(catalogue, snapshot_path)
        except SnapshotError as e:
            log.error(f"Snapshot not saved, changes held in memory only: {e}")
    else:
        log.info("No changes detected")
    return report


def bootstrap(
    catalogue: Catalogue,
    snapshot_path: Path | None = None,
    json_path: Path | None = None,
) -> str:
    """Restore the catalogue at startup. Returns the restore source."""
    snapshot_path = snapshot_path or config.SNAPSHOT_FILE
    json_path = json_path or config.BOOTSTRAP_JSON_FILE

    source = restore(catalogue, snapshot_path, json_path)
    if len(catalogue) == 0:
        log.info("Nothing loaded, running initial refresh...")
        timestamp = round_time(datetime.now(timezone.utc), config.REFRESH_INTERVAL)
        try:
            refresh(catalogue, timestamp, snapshot_path)
        except FeedError as e:
            log.error(f"Initial refresh failed, serving empty catalogue: {e}")
    return source
