"""Filesystem-backed response cache.

Each entry is one gzip-compressed pickle (``pandas.to_pickle``) named by
:func:`~mobdb.cache.keys.derive_key`.  There is no index file: the directory
listing is the index, and an entry's age is its file modification time.

Entries are never expired on read.  A stale entry is reported as a miss and
left on disk until :meth:`CacheStore.clear` (or an overwrite) removes it.
Corrupt or unreadable entries are logged and treated as misses.
"""

from __future__ import annotations

import logging
import os
import tempfile
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

import pandas as pd

from mobdb.cache.keys import CACHE_EXTENSION
from mobdb.config import resolve_cache_dir
from mobdb.models import CacheEntry, CacheInfo
from mobdb.output import get_output

logger = logging.getLogger(__name__)

_SECONDS_PER_HOUR = 3600.0
BYTES_PER_MB = 1024 ** 2


class CacheStore:
    """Read, write, list and evict cached payloads.

    Args:
        directory: Fixed cache directory.  When ``None`` the directory is
            re-resolved on every call with
            :func:`~mobdb.config.resolve_cache_dir`, so changes to
            ``MOBDB_CACHE_PATH`` or the options take effect immediately.

    Example::

        store = CacheStore(tmp_path)
        store.write({"id": "X-1"}, "feeds_abc.pkl.gz")
        store.read("feeds_abc.pkl.gz", max_age_hours=1)
    """

    def __init__(self, directory: Optional[Union[str, Path]] = None) -> None:
        self._directory = Path(directory).expanduser() if directory is not None else None

    # ------------------------------------------------------------------ #
    # Directory
    # ------------------------------------------------------------------ #

    def resolve_directory(self) -> Path:
        """Return the cache directory without creating it."""
        if self._directory is not None:
            return self._directory
        return resolve_cache_dir()

    def ensure_directory(self) -> Path:
        """Create the cache directory (and parents) if needed and return it."""
        path = self.resolve_directory()
        path.mkdir(parents=True, exist_ok=True)
        return path

    # ------------------------------------------------------------------ #
    # Entries
    # ------------------------------------------------------------------ #

    def read(self, key: str, max_age_hours: Optional[float] = None) -> Optional[Any]:
        """Return the payload stored under *key*, or ``None`` on a miss.

        Args:
            key: Entry file name.
            max_age_hours: Treat entries older than this as missing.
                ``None`` disables the age check.
        """
        path = self.resolve_directory() / key
        if not path.is_file():
            return None

        output = get_output()
        if max_age_hours is not None:
            age = _age_hours(path.stat().st_mtime)
            if age > max_age_hours:
                output.info(f"Cache expired (age: {age:.1f}h > max: {max_age_hours:g}h)")
                return None

        try:
            payload = pd.read_pickle(path, compression="gzip")
        except Exception:
            logger.warning("Ignoring unreadable cache entry %s", path, exc_info=True)
            return None

        output.success("Using cached data")
        return payload

    def write(self, payload: Any, key: str) -> Path:
        """Serialize *payload* under *key*, replacing any existing entry.

        The payload is written to a temporary file in the cache directory and
        renamed into place, so readers never observe a partial entry.

        Returns:
            The path of the written entry.

        Raises:
            OSError: If the directory or file cannot be written.
        """
        directory = self.ensure_directory()
        path = directory / key
        fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{key}.", suffix=".tmp")
        os.close(fd)
        try:
            pd.to_pickle(payload, tmp_name, compression="gzip")
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise
        get_output().debug(f"Cached response as {key}")
        return path

    def remove(self, key: str) -> bool:
        """Delete one entry.  Returns whether a file was removed."""
        path = self.resolve_directory() / key
        if not path.is_file():
            return False
        path.unlink()
        return True

    def list_entries(self) -> list[CacheEntry]:
        """List cache entries, most recently modified first.

        Returns an empty list when the directory does not exist.
        """
        directory = self.resolve_directory()
        if not directory.is_dir():
            return []

        now = time.time()
        entries = []
        for path in directory.glob(f"*{CACHE_EXTENSION}"):
            if not path.is_file():
                continue
            stat = path.stat()
            entries.append(
                CacheEntry(
                    name=path.name,
                    size=stat.st_size,
                    modified=datetime.fromtimestamp(stat.st_mtime),
                    age_hours=_age_hours(stat.st_mtime, now),
                )
            )
        entries.sort(key=lambda e: e.modified, reverse=True)
        return entries

    def clear(self, older_than_days: Optional[float] = None) -> int:
        """Delete entries and return how many were removed.

        Args:
            older_than_days: Only delete entries older than this many days.
                ``None`` deletes every entry.
        """
        output = get_output()
        directory = self.resolve_directory()
        if not directory.is_dir():
            output.info("No cache directory found")
            return 0

        entries = self.list_entries()
        if not entries:
            output.info("Cache is already empty")
            return 0

        if older_than_days is not None:
            entries = [e for e in entries if e.age_hours / 24 > older_than_days]
            if not entries:
                output.info(f"No files older than {older_than_days:g} day(s)")
                return 0

        removed = 0
        for entry in entries:
            if self.remove(entry.name):
                removed += 1
        output.success(f"Removed {removed} cached file(s)")
        return removed

    def info(self) -> CacheInfo:
        """Summarize the cache directory."""
        directory = self.resolve_directory()
        entries = self.list_entries()
        total = sum(e.size for e in entries)
        return CacheInfo(
            path=str(directory),
            files=len(entries),
            size_mb=round(total / BYTES_PER_MB, 2),
            exists=directory.is_dir(),
        )


def _age_hours(mtime: float, now: Optional[float] = None) -> float:
    if now is None:
        now = time.time()
    return (now - mtime) / _SECONDS_PER_HOUR
