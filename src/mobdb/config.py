"""Process options, per-user directories and the cache directory lookup.

* **Directories** -- config, data (stored credentials) and cache live under
  the XDG base directories on Linux/BSD and under ``~/.mobdb/`` on macOS and
  Windows.
* **Options** -- one :class:`~mobdb.models.Options` per process
  (:func:`get_options`, :func:`set_options`, :func:`reset_options`), loaded
  from and saved to ``config.json`` in the config directory.
* **Cache directory** -- :func:`resolve_cache_dir` checks
  ``MOBDB_CACHE_PATH``, then ``Options.cache_path``, then the platform
  default, every time it is called.

Files are replaced atomically (:func:`atomic_write`) so a crash never leaves
a truncated config or credential file behind.
"""

from __future__ import annotations

import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from mobdb.exceptions import ConfigError
from mobdb.models import Options

_APP_NAME = "mobdb"
_OPTIONS_FILE = "config.json"

CACHE_PATH_ENV = "MOBDB_CACHE_PATH"
"""Environment variable overriding the cache directory."""

REFRESH_TOKEN_ENV = "MOBDB_REFRESH_TOKEN"
"""Environment variable holding the long-lived refresh token."""


# --- Directories ---


def _is_xdg_platform() -> bool:
    """Linux and the BSDs follow the XDG base directory layout."""
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(xdg_var: str, xdg_default: str, fallback: Optional[str]) -> Path:
    """Locate one of the per-user directories without creating it.

    *xdg_default* is relative to the home directory and used when *xdg_var*
    is unset or empty.  On non-XDG platforms the directory is ``~/.mobdb``,
    or its *fallback* subdirectory.
    """
    if _is_xdg_platform():
        base = os.environ.get(xdg_var) or str(Path.home() / xdg_default)
        return Path(base) / _APP_NAME
    root = Path.home() / f".{_APP_NAME}"
    return root / fallback if fallback else root


def get_config_dir() -> Path:
    """Return (and create) ``$XDG_CONFIG_HOME/mobdb`` or ``~/.mobdb``."""
    path = _app_dir("XDG_CONFIG_HOME", ".config", None)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return (and create) ``$XDG_DATA_HOME/mobdb`` or ``~/.mobdb/data``."""
    path = _app_dir("XDG_DATA_HOME", os.path.join(".local", "share"), "data")
    path.mkdir(parents=True, exist_ok=True)
    return path


def default_cache_dir() -> Path:
    """Return ``$XDG_CACHE_HOME/mobdb`` or ``~/.mobdb/cache``.

    Nothing is created here; the cache store makes its directory on the
    first write.
    """
    return _app_dir("XDG_CACHE_HOME", ".cache", "cache")


def resolve_cache_dir() -> Path:
    """Resolve the cache directory from the current environment and options.

    Precedence (high to low):
        1. ``MOBDB_CACHE_PATH`` environment variable
        2. ``cache_path`` in the process options
        3. :func:`default_cache_dir`

    Tilde-prefixed paths are expanded.  Nothing is memoised, so changing
    the environment or options takes effect on the next call.
    """
    env_path = os.environ.get(CACHE_PATH_ENV, "")
    if env_path:
        return Path(env_path).expanduser()

    opt_path = get_options().cache_path
    if opt_path:
        return Path(opt_path).expanduser()

    return default_cache_dir()


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Replace *path* with *data* in one rename.

    The text is written and fsynced to a hidden temp file next to *path*,
    which is then moved over *path* with :func:`os.replace`.  If anything
    fails the temp file is removed and the error re-raised.

    Args:
        path: Destination file; parent directories are created.
        data: UTF-8 text to write.
        mode: Permission bits set on the temp file before the secret is
            written, e.g. ``0o600`` for credentials.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            if mode is not None:
                os.chmod(tmp_name, mode)
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


# --- Persisted options ---


def _options_path() -> Path:
    return get_config_dir() / _OPTIONS_FILE


def load_global_config() -> Options:
    """Read ``config.json`` from the config directory.

    A missing file yields default :class:`~mobdb.models.Options`.

    Raises:
        ConfigError: The file is not JSON or does not validate.
    """
    path = _options_path()
    if not path.is_file():
        return Options()
    try:
        return Options.model_validate_json(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise ConfigError(
            f"Invalid global config at {path}: {exc}",
            hint="Fix or delete the file to restore defaults.",
        ) from exc


def save_global_config(options: Options) -> Path:
    """Write *options* to ``config.json`` and return the file path."""
    path = _options_path()
    atomic_write(path, options.model_dump_json(indent=2) + "\n")
    return path


# --- Process-level options ---

_options: Optional[Options] = None


def get_options() -> Options:
    """Return the process-level :class:`~mobdb.models.Options`.

    The persisted global config is loaded on first use.
    """
    global _options
    if _options is None:
        _options = load_global_config()
    return _options


def set_options(options: Options) -> None:
    """Install *options* as the process-level options."""
    global _options
    _options = options


def reset_options() -> None:
    """Drop the process-level options so the next access reloads them.

    Primarily useful in test suites to ensure a clean state between tests.
    """
    global _options
    _options = None
