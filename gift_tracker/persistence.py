"""Durable storage for the catalogue.

Two formats:
  - data.pkl   binary snapshot of every gift with full history, written after
               each refresh that changed something, read back at startup.
  - gifts.json the /gifts.json wire document; a human-readable seed used when
               no binary snapshot is available.
               Regenerate it from data.pkl with:
                   python -m gift_tracker.persistence

Writes are atomic (tmp + fsync + os.replace) under an exclusive fcntl.flock
on the target, so a crash mid-write never leaves a truncated snapshot.
"""

import fcntl
import json
import logging
import os
import pickle
from contextlib import contextmanager
from pathlib import Path

from .catalogue import Catalogue
from .history import TrackedItem
from .wire import item_from_wire, items_to_wire

log = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class SnapshotError(Exception):
    """A snapshot or bootstrap file could not be read or written."""


def _check_ordered(items: list[TrackedItem], path: Path) -> list[TrackedItem]:
    """Every history must be non-decreasing in time, or later records get refused."""
    for item in items:
        times = [s.observed_at for s in item.history]
        if any(later < earlier for earlier, later in zip(times, times[1:])):
            raise SnapshotError(f"history of {item.identifier} in {path} is out of order")
    return items


@contextmanager
def _atomic_write(path: Path, mode: str = "wb"):
    """Yield a temp file handle; replace `path` with it on clean exit.

    Holds an exclusive lock on `path` for the whole write. On error the temp
    file is discarded and `path` is left untouched.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(str(path), os.O_RDWR | os.O_CREAT)
    tmp = str(path) + ".tmp"
    try:
        fcntl.flock(fd, fcntl.LOCK_EX)
        try:
            with open(tmp, mode) as f:
                yield f
                f.flush()
                os.fsync(f.fileno())
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
        os.replace(tmp, str(path))
    finally:
        fcntl.flock(fd, fcntl.LOCK_UN)
        os.close(fd)


@contextmanager
def _shared_read(path: Path, mode: str = "rb"):
    with open(path, mode) as f:
        fcntl.flock(f, fcntl.LOCK_SH)
        try:
            yield f
        finally:
            fcntl.flock(f, fcntl.LOCK_UN)


def save_snapshot(catalogue: Catalogue, path: Path) -> None:
    """Write the whole catalogue as a binary snapshot."""
    with catalogue.lock:
        payload = {"version": SNAPSHOT_VERSION, "items": catalogue.items()}
        try:
            with _atomic_write(path) as f:
                pickle.dump(payload, f, protocol=pickle.HIGHEST_PROTOCOL)
        except (OSError, pickle.PicklingError) as e:
            raise SnapshotError(f"failed to write snapshot {path}: {e}") from e
    log.info(f"Saved {len(payload['items'])} gift(s) to {Path(path).name}")


def load_snapshot(path: Path) -> list[TrackedItem]:
    """Read a binary snapshot written by save_snapshot()."""
    try:
        with _shared_read(path) as f:
            payload = pickle.load(f)
    except FileNotFoundError as e:
        raise SnapshotError(f"no snapshot at {path}") from e
    except (OSError, pickle.UnpicklingError, EOFError, AttributeError, ImportError,
            IndexError, KeyError, TypeError, ValueError) as e:
        raise SnapshotError(f"failed to read snapshot {path}: {e}") from e

    if not isinstance(payload, dict) or payload.get("version") != SNAPSHOT_VERSION:
        raise SnapshotError(f"unsupported snapshot format in {path}")
    items = payload.get("items")
    if not isinstance(items, list) or not all(isinstance(i, TrackedItem) for i in items):
        raise SnapshotError(f"snapshot {path} does not hold a gift list")
    return _check_ordered(items, path)


def save_bootstrap_json(catalogue: Catalogue, path: Path) -> None:
    """Write the catalogue as the wire JSON document."""
    with catalogue.lock:
        data = items_to_wire(catalogue.items())
    try:
        with _atomic_write(path, "w") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
    except OSError as e:
        raise SnapshotError(f"failed to write {path}: {e}") from e


def load_bootstrap_json(path: Path) -> list[TrackedItem]:
    """Read gifts from a wire JSON document."""
    try:
        with _shared_read(path, "r") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise SnapshotError(f"no bootstrap document at {path}") from e
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SnapshotError(f"failed to read {path}: {e}") from e

    if not isinstance(data, list):
        raise SnapshotError(f"{path} is not a list of gifts")
    try:
        items = [item_from_wire(entry) for entry in data]
    except (KeyError, TypeError, ValueError, AttributeError, OverflowError, OSError) as e:
        raise SnapshotError(f"malformed gift in {path}: {e}") from e
    return _check_ordered(items, path)


def restore(catalogue: Catalogue, snapshot_path: Path, json_path: Path) -> str:
    """Load the catalogue: binary snapshot → JSON document → empty.

    Returns which source was used: "snapshot", "json" or "empty".
    """
    try:
        catalogue.replace_all(load_snapshot(snapshot_path))
        log.info(f"Restored catalogue from {Path(snapshot_path).name}")
        return "snapshot"
    except SnapshotError as e:
        log.warning(f"Snapshot restore failed: {e}")

    try:
        catalogue.replace_all(load_bootstrap_json(json_path))
        log.info(f"Restored catalogue from {Path(json_path).name}")
        return "json"
    except SnapshotError as e:
        log.warning(f"JSON bootstrap failed: {e}")

    catalogue.replace_all([])
    log.info("Starting with an empty catalogue")
    return "empty"


def export_bootstrap_json(snapshot_path: Path, json_path: Path) -> int:
    """Write the seed JSON document from the binary snapshot. Returns the gift count."""
    catalogue = Catalogue(load_snapshot(snapshot_path))
    save_bootstrap_json(catalogue, json_path)
    log.info(f"Exported {len(catalogue)} gift(s) to {Path(json_path).name}")
    return len(catalogue)


def main():
    from .config import BOOTSTRAP_JSON_FILE, SNAPSHOT_FILE

    try:
        export_bootstrap_json(SNAPSHOT_FILE, BOOTSTRAP_JSON_FILE)
    except SnapshotError as e:
        log.error(f"Export failed: {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    main()
