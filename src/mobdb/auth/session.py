"""Refresh-token / access-token lifecycle.

A :class:`Session` is the explicit credential context threaded through every
API call.  It holds:

- a **refresh token** -- long-lived, supplied by the caller, the
  ``MOBDB_REFRESH_TOKEN`` environment variable, or the persisted
  :class:`~mobdb.auth.credential_store.CredentialStore`;
- an **access token** -- short-lived, derived from the refresh token by a
  single ``POST /tokens`` exchange and held in memory only.

The access token is discarded whenever a new refresh token is set, and is
re-derived whenever the resolved refresh token differs from the one it was
derived from (e.g. after the environment variable changes).

A process-default session is available through :func:`get_session` for the
module-level convenience API (:func:`set_key`, :func:`has_key`).
"""

from __future__ import annotations

import os
import time
from typing import Any, Optional, Tuple

import httpx

from mobdb.auth.credential_store import CredentialEntry, CredentialStore
from mobdb.config import REFRESH_TOKEN_ENV, get_options
from mobdb.exceptions import (
    AuthenticationError,
    ConnectionError_,
    ValidationError,
    extract_error_message,
)
from mobdb.models import Options
from mobdb.output import get_output

TOKEN_ENDPOINT = "tokens"

_RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


class Session:
    """Credential context holding a refresh token and its derived access token.

    Args:
        refresh_token: Optional refresh token for this session.  Takes
            precedence over the environment and the credential store.
        base_url: API root used for the token exchange.  When omitted, the
            ``base_url`` of the options passed to :meth:`get_access_token`
            (or the process options) is used.
        timeout: Timeout in seconds for the token exchange.  Defaults to
            ``options.request.timeout``.

    Example::

        session = Session("my-refresh-token")
        token = session.get_access_token()
    """

    def __init__(
        self,
        refresh_token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._refresh_token: Optional[str] = None
        self._access_token: Optional[str] = None
        self._derived_from: Optional[Tuple[str, str]] = None
        self._base_url = base_url
        self._timeout = timeout
        if refresh_token is not None:
            _validate_token(refresh_token)
            self._refresh_token = refresh_token

    def token_url(self, options: Optional[Options] = None) -> str:
        """The token endpoint for *options* (default: the process options)."""
        base_url = self._base_url or (options or get_options()).base_url
        return f"{base_url.rstrip('/')}/{TOKEN_ENDPOINT}"

    # ------------------------------------------------------------------ #
    # Refresh token
    # ------------------------------------------------------------------ #

    def set_refresh_token(self, refresh_token: str, install: bool = False) -> None:
        """Set the refresh token for this session and drop any access token.

        Args:
            refresh_token: The refresh token from your Mobility Database
                account page.
            install: Also persist the token to the credential store so later
                processes pick it up.

        Raises:
            ValidationError: If *refresh_token* is not a non-empty string.
        """
        _validate_token(refresh_token)
        self._refresh_token = refresh_token
        self._access_token = None
        self._derived_from = None

        output = get_output()
        if install:
            store = CredentialStore()
            store.save(CredentialEntry(credential=refresh_token))
            output.success(f"Refresh token set and saved to {store.path}.")
        else:
            output.success("Refresh token set for current session.")
            output.suggest("Use install=True to save it permanently.")

    def resolve_refresh_token(self) -> Optional[str]:
        """Return the effective refresh token, or ``None`` if none is configured.

        Resolution order: set on this session, then ``MOBDB_REFRESH_TOKEN``,
        then the credential store.
        """
        if self._refresh_token is not None:
            return self._refresh_token
        env_token = os.environ.get(REFRESH_TOKEN_ENV, "")
        if env_token:
            return env_token
        entry = CredentialStore().load()
        if entry is not None and entry.credential:
            return entry.credential
        return None

    def has_key(self) -> bool:
        """Whether a refresh token can be resolved."""
        return self.resolve_refresh_token() is not None

    # ------------------------------------------------------------------ #
    # Access token
    # ------------------------------------------------------------------ #

    def get_access_token(self, force: bool = False, options: Optional[Options] = None) -> str:
        """Return the current access token, exchanging the refresh token if needed.

        Args:
            force: Exchange for a fresh access token even if one is held.
            options: Options of the calling client.  Supply the token
                endpoint, timeout and retry budget; defaults to the process
                options.

        Raises:
            AuthenticationError: If no refresh token is configured, the API
                rejects it, or the response has no ``access_token``.
            ConnectionError_: If the token endpoint cannot be reached.
        """
        refresh_token = self.resolve_refresh_token()
        if refresh_token is None:
            raise AuthenticationError("No refresh token found.")

        options = options or get_options()
        source = (refresh_token, self.token_url(options))
        if not force and self._access_token is not None and self._derived_from == source:
            return self._access_token

        self._access_token = self._exchange(refresh_token, options)
        self._derived_from = source
        return self._access_token

    def clear(self) -> None:
        """Forget both tokens held by this session (the store is untouched)."""
        self._refresh_token = None
        self._access_token = None
        self._derived_from = None

    def _exchange(self, refresh_token: str, options: Options) -> str:
        """POST the refresh token to the token endpoint and return the access token.

        Network errors, 429 and 5xx are retried with exponential backoff up
        to ``options.request.max_tries`` attempts.
        """
        url = self.token_url(options)
        timeout = self._timeout if self._timeout is not None else options.request.timeout
        max_tries = options.request.max_tries
        output = get_output()

        for attempt in range(1, max_tries + 1):
            try:
                response = httpx.post(
                    url,
                    json={"refresh_token": refresh_token},
                    headers={"Content-Type": "application/json", "Accept": "application/json"},
                    timeout=timeout,
                )
            except httpx.HTTPError as exc:
                if attempt >= max_tries:
                    raise ConnectionError_(
                        f"Token request failed after {attempt} attempt(s): {exc}"
                    ) from exc
                output.debug(f"Token request error: {exc}, retrying in {2 ** (attempt - 1)}s")
                time.sleep(2 ** (attempt - 1))
                continue
            if response.status_code in _RETRYABLE_STATUSES and attempt < max_tries:
                output.debug(
                    f"Token request got HTTP {response.status_code}, "
                    f"retrying in {2 ** (attempt - 1)}s"
                )
                time.sleep(2 ** (attempt - 1))
                continue
            break

        if response.status_code >= 400:
            raise AuthenticationError(
                f"Token request failed with status {response.status_code}: "
                f"{extract_error_message(response)}"
            )

        try:
            body: Any = response.json()
        except ValueError:
            body = None
        access_token = body.get("access_token") if isinstance(body, dict) else None
        if not access_token:
            raise AuthenticationError(
                "Failed to generate access token.",
                hint="Check that your refresh token is valid and has not been revoked.",
            )
        return access_token


def _validate_token(refresh_token: Any) -> None:
    if not isinstance(refresh_token, str):
        raise ValidationError(
            "refresh_token must be a single character string.",
            hint='Pass the token as a string, e.g. set_key("your_refresh_token").',
        )
    if not refresh_token:
        raise ValidationError("refresh_token cannot be empty.")


# ------------------------------------------------------------------ #
# Process-default session
# ------------------------------------------------------------------ #

_session: Optional[Session] = None


def get_session() -> Session:
    """Return the process-default :class:`Session`, creating it lazily."""
    global _session
    if _session is None:
        _session = Session()
    return _session


def set_session(session: Session) -> None:
    """Install *session* as the process-default session."""
    global _session
    _session = session


def reset_session() -> None:
    """Drop the process-default session (tokens held in memory are lost)."""
    global _session
    _session = None


def set_key(refresh_token: str, install: bool = False) -> None:
    """Set the refresh token on the process-default session.

    Args:
        refresh_token: Your Mobility Database refresh token.
        install: Also persist it to the credential store.
    """
    get_session().set_refresh_token(refresh_token, install=install)


def has_key() -> bool:
    """Whether the process-default session can resolve a refresh token."""
    return get_session().has_key()
