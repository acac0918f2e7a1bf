"""Gift catalogue CSV feed.

Downloads the catalogue export and splits it into rows. The first line is
a header and is dropped; see ingest.py for the column order.
"""

import csv
import io
import logging

from . import config
from .http_client import HttpClient

log = logging.getLogger(__name__)


class FeedError(Exception):
    """The feed could not be downloaded or decoded."""


def fetch_feed(client: HttpClient, url: str | None = None) -> str:
    """Download the CSV document and return it as text."""
    url = url or config.FEED_URL
    try:
        result = client.fetch(url, timeout=config.FEED_TIMEOUT)
    except Exception as e:
        raise FeedError(f"failed to fetch {url}: {type(e).__name__}: {e}") from e

    if result.status_code != 200:
        raise FeedError(f"{url} returned {result.status_code}")

    return result.content.decode(config.FEED_ENCODING, errors="replace")


def parse_feed(text: str) -> list[list[str]]:
    """Split CSV text into data rows (header skipped, blank lines dropped)."""
    try:
        rows = list(csv.reader(io.StringIO(text)))
    except csv.Error as e:
        raise FeedError(f"failed to parse CSV: {e}") from e
    return [row for row in rows[1:] if any(cell.strip() for cell in row)]
