"""Persistent refresh-token store.

Stores the long-lived refresh token in
``~/.local/share/mobdb/credentials/<name>.json`` (XDG) or the
platform-equivalent directory.  Files are written atomically with ``0o600``
permissions so that secrets are never world-readable, even momentarily.

Only refresh tokens are ever written here.  Access tokens are short-lived
and live in process memory on a :class:`~mobdb.auth.session.Session`.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from mobdb.config import atomic_write, get_data_dir

DEFAULT_CREDENTIAL_NAME = "refresh_token"


class CredentialEntry(BaseModel):
    """A stored refresh token.

    Attributes:
        credential: The refresh token value.
        saved_at: UTC time the token was stored.
    """

    credential: str = Field(description="The refresh token value")
    saved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def _credentials_dir() -> Path:
    """Return the credentials directory, creating it if needed."""
    path = get_data_dir() / "credentials"
    path.mkdir(parents=True, exist_ok=True)
    return path


class CredentialStore:
    """Read/write one named credential file.

    Args:
        name: Identifier used to derive the file name.

    Example::

        store = CredentialStore()
        store.save(CredentialEntry(credential="tok123"))
        assert store.load().credential == "tok123"
    """

    def __init__(self, name: str = DEFAULT_CREDENTIAL_NAME) -> None:
        self._name = name
        self._path = _credentials_dir() / f"{name}.json"

    @property
    def path(self) -> Path:
        """The filesystem path to this credential file."""
        return self._path

    def save(self, entry: CredentialEntry) -> None:
        """Persist a credential entry atomically with ``0o600`` permissions.

        Raises:
            OSError: If the file cannot be written.
        """
        text = json.dumps(entry.model_dump(mode="json"), indent=2) + "\n"
        atomic_write(self._path, text, mode=0o600)

    def load(self) -> Optional[CredentialEntry]:
        """Load the stored entry, or ``None`` if absent or unparseable."""
        if not self._path.is_file():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return CredentialEntry.model_validate(data)
        except (json.JSONDecodeError, ValueError, OSError):
            return None

    def clear(self) -> None:
        """Delete the stored credential file if it exists."""
        if self._path.is_file():
            self._path.unlink()
