"""Authentication for the Mobility Database API.

- :class:`Session` -- explicit credential context: a long-lived refresh
  token and the short-lived access token derived from it.
- :class:`CredentialStore` -- optional on-disk persistence of the refresh
  token (never the access token).
- :func:`set_key` / :func:`has_key` -- convenience wrappers around the
  process-default session.

Typical usage::

    import mobdb

    mobdb.set_key("your_refresh_token")
    feeds = mobdb.feeds(provider="BART")
"""

from mobdb.auth.credential_store import CredentialEntry, CredentialStore
from mobdb.auth.session import (
    Session,
    get_session,
    has_key,
    reset_session,
    set_key,
    set_session,
)

__all__ = [
    "CredentialEntry",
    "CredentialStore",
    "Session",
    "get_session",
    "has_key",
    "reset_session",
    "set_key",
    "set_session",
]
