"""Background scheduler for catalogue refreshes.

Runs the refresh loop as a background thread inside the web process. Each
cycle fires on a round interval boundary (e.g. :00, :10, :20 for a 10 minute
interval) so every snapshot of one cycle shares the same bucketed timestamp.
Errors are logged without crashing the loop; the next tick is the retry.

Thread model:
  - 1 long-lived refresh thread on a dedicated executor
  - Isolated from FastAPI's default executor for sync route handlers
"""

import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

from .catalogue import Catalogue
from .config import REFRESH_INTERVAL
from .feed import FeedError
from .helpers import round_time
from .refresh import refresh

log = logging.getLogger(__name__)

_shutdown = threading.Event()
_refresh_pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="refresh")

MIN_INTERVAL = 10  # floor to prevent hammering the feed


def _wait_until(target: datetime) -> bool:
    """Sleep until `target` in 1-second increments. Returns False on shutdown."""
    while True:
        remaining = (target - datetime.now(timezone.utc)).total_seconds()
        if remaining <= 0:
            return True
        if _shutdown.wait(min(remaining, 1.0)):
            return False


def _run_refresh_loop(catalogue: Catalogue, interval: int, refresh_fn=refresh):
    """Refresh on every interval boundary until shutdown is signalled."""
    interval = max(interval, MIN_INTERVAL)
    log.info(f"Scheduler: refresh started (interval={interval}s)")
    while not _shutdown.is_set():
        target = round_time(datetime.now(timezone.utc), interval) + timedelta(seconds=interval)
        if not _wait_until(target):
            break
        try:
            refresh_fn(catalogue, target)
        except FeedError as e:
            log.error(f"Scheduler: refresh failed: {e}")
        except Exception:
            log.exception("Scheduler: refresh error")
    log.info("Scheduler: refresh stopped")


async def start_scheduler(catalogue: Catalogue) -> list[asyncio.Future]:
    """Launch the refresh loop as a background task. Returns future handles."""
    _shutdown.clear()
    if REFRESH_INTERVAL <= 0:
        log.info("Scheduler: refresh disabled (interval=0)")
        return []
    loop = asyncio.get_running_loop()
    task = loop.run_in_executor(_refresh_pool, _run_refresh_loop, catalogue, REFRESH_INTERVAL)
    log.info(f"Scheduler: refresh every {REFRESH_INTERVAL}s")
    return [task]


def stop_scheduler():
    """Signal the refresh loop to stop."""
    log.info("Scheduler: stopping refresh...")
    _shutdown.set()
