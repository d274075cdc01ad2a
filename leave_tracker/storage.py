"""JSON file persistence for leave entries.

The whole collection is one JSON array. Writers replace the file in one step
so readers always see either the previous or the next complete collection.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
import shutil
from contextlib import contextmanager
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Iterator, List

from .errors import StoreIOError


logger = logging.getLogger(__name__)

# One write lock per entries file, shared by every store in the process.
_WRITE_LOCKS: Dict[Path, Lock] = {}
_WRITE_LOCKS_GUARD = Lock()


def _write_lock_for(path: Path) -> Lock:
    with _WRITE_LOCKS_GUARD:
        lock = _WRITE_LOCKS.get(path)
        if lock is None:
            lock = _WRITE_LOCKS[path] = Lock()
        return lock


def dedupe_by_id(entries: List[Any]) -> List[Dict[str, Any]]:
    """Collapse entries sharing an ``id``; the later occurrence wins.

    The surviving entry keeps the position of the first occurrence. Items
    without an ``id`` are dropped.
    """
    by_id: Dict[str, Dict[str, Any]] = {}
    for entry in entries:
        if isinstance(entry, dict) and entry.get("id"):
            by_id[entry["id"]] = entry
    return list(by_id.values())


class EntryStore:
    """Read and replace the entries file as a single unit.

    ``load_all`` never takes the lock. Every read-modify-write cycle must run
    inside :meth:`locked` so concurrent mutations cannot overwrite each other.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).resolve()
        self._lock = _write_lock_for(self.path)

    def __repr__(self) -> str:
        return f"EntryStore({str(self.path)!r})"

    @contextmanager
    def locked(self) -> Iterator["EntryStore"]:
        with self._lock:
            yield self

    def load_all(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StoreIOError(f"Could not read {self.path}: {exc}") from exc

        try:
            data = json.loads(raw) if raw.strip() else []
        except ValueError as exc:
            logger.error("Entries file %s is malformed, treating as empty: %s", self.path, exc)
            return []
        if not isinstance(data, list):
            logger.error("Entries file %s does not hold a list, treating as empty", self.path)
            return []
        return dedupe_by_id(data)

    def _preserve_unreadable(self) -> None:
        """Copy an entries file that does not parse aside before it is replaced."""
        if not self.path.exists():
            return
        raw = self.path.read_text(encoding="utf-8", errors="replace")
        try:
            data = json.loads(raw) if raw.strip() else []
        except ValueError:
            data = None
        if isinstance(data, list):
            return
        stamp = dt.datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        backup_path = self.path.with_name(f"{self.path.stem}_corrupt_{stamp}{self.path.suffix}")
        shutil.copy2(self.path, backup_path)
        logger.warning("Unreadable entries file %s copied to %s before overwrite", self.path, backup_path)

    def save_all(self, entries: List[Dict[str, Any]]) -> None:
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self._preserve_unreadable()
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(json.dumps(list(entries), indent=2), encoding="utf-8")
            temp_path.replace(self.path)
        except OSError as exc:
            logger.exception("Failed to write entries file %s", self.path)
            try:
                temp_path.unlink()
            except OSError:
                pass
            raise StoreIOError(f"Could not write {self.path}: {exc}") from exc


__all__ = ["EntryStore", "dedupe_by_id"]
