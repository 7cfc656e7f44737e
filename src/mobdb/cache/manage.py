"""User-facing cache management: show/set the directory, inspect, clear."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union

import pandas as pd

from mobdb.cache.store import BYTES_PER_MB, CacheStore
from mobdb.config import CACHE_PATH_ENV, get_options, save_global_config, set_options
from mobdb.models import CacheInfo
from mobdb.output import get_output

LIST_COLUMNS = ["file", "size_mb", "modified", "age_hours"]


def cache_path(path: Optional[Union[str, Path]] = None, install: bool = False) -> Path:
    """Show or set the cache directory.

    With no *path*, report the currently resolved directory.  Otherwise
    create the directory, point ``MOBDB_CACHE_PATH`` at it for this process
    and, with ``install=True``, persist it as ``cache_path`` in the global
    config file.

    Returns:
        The (possibly new) cache directory.
    """
    output = get_output()
    if path is None:
        current = CacheStore().resolve_directory()
        output.info(f"Current cache path: {current}")
        return current

    target = Path(path).expanduser()
    if not target.is_dir():
        target.mkdir(parents=True, exist_ok=True)
        output.success(f"Created cache directory: {target}")

    os.environ[CACHE_PATH_ENV] = str(target)
    output.success(f"Cache path set to: {target}")

    if install:
        options = get_options().model_copy(update={"cache_path": str(target)})
        set_options(options)
        config_file = save_global_config(options)
        output.success(f"Saved cache path to {config_file}")

    return target


def cache_info(store: Optional[CacheStore] = None) -> CacheInfo:
    """Report the cache location, entry count and total size."""
    info = (store or CacheStore()).info()
    output = get_output()
    output.info(f"Path: {info.path}")
    output.info(f"Files: {info.files}")
    output.info(f"Size: {info.size_mb} MB")
    output.info(f"Exists: {info.exists}")
    return info


def cache_list(store: Optional[CacheStore] = None) -> pd.DataFrame:
    """Return one row per cached file, newest first.

    Columns: ``file``, ``size_mb``, ``modified``, ``age_hours``.
    """
    store = store or CacheStore()
    output = get_output()
    directory = store.resolve_directory()
    if not directory.is_dir():
        output.warning(f"Cache directory does not exist: {directory}")
        return pd.DataFrame(columns=LIST_COLUMNS)

    entries = store.list_entries()
    if not entries:
        output.info("Cache is empty")
        return pd.DataFrame(columns=LIST_COLUMNS)

    return pd.DataFrame(
        {
            "file": [e.name for e in entries],
            "size_mb": [round(e.size / BYTES_PER_MB, 2) for e in entries],
            "modified": [e.modified for e in entries],
            "age_hours": [round(e.age_hours, 1) for e in entries],
        },
        columns=LIST_COLUMNS,
    )


def cache_clear(older_than: Optional[float] = None, store: Optional[CacheStore] = None) -> int:
    """Remove cached files, optionally only those older than *older_than* days.

    Returns:
        The number of files removed.
    """
    return (store or CacheStore()).clear(older_than_days=older_than)
