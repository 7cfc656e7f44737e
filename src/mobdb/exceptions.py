"""Exception hierarchy for mobdb.

All exceptions inherit from :class:`MobdbError`, which carries a
human-readable ``message`` and an optional ``hint`` telling the caller what
to do next.  Subclasses set a class-level default hint that can be
overridden per instance.

Subclass hierarchy::

    MobdbError
    +-- ValidationError        (bad arguments, raised before any network call)
    +-- AuthenticationError    (no refresh token, or the API rejected it)
    +-- ConfigError            (unreadable or invalid configuration)
    +-- UpstreamError          (non-2xx response after retries)
        +-- NotFoundError      (HTTP 404)
        +-- ConnectionError_   (network failure after retries)

A cache miss is never an exception: the cache layer returns ``None`` and the
caller falls through to a live fetch.
"""

from __future__ import annotations

from typing import Any, Optional


class MobdbError(Exception):
    """Base exception for all mobdb errors.

    Args:
        message: Human-readable error description.
        hint: Optional remediation hint.  Falls back to the class-level
            ``hint`` when omitted.
    """

    hint: Optional[str] = None

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if hint is not None:
            self.hint = hint

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message}\n→ {self.hint}"
        return self.message


class ValidationError(MobdbError):
    """Raised for malformed or contradictory arguments (never retried)."""


class AuthenticationError(MobdbError):
    """Raised when no refresh token is configured or the credential exchange fails."""

    hint = (
        "Set your refresh token with mobdb.set_key() or the MOBDB_REFRESH_TOKEN "
        "environment variable. Get one at https://mobilitydatabase.org"
    )


class ConfigError(MobdbError):
    """Raised for configuration problems (invalid JSON, bad values)."""


class UpstreamError(MobdbError):
    """Raised when the API returns a non-2xx response after all retries.

    Args:
        message: The message extracted from the response body.
        status_code: The HTTP status code, or ``None`` for transport failures.
        hint: Optional remediation hint.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message, hint=hint)
        self.status_code = status_code


class NotFoundError(UpstreamError):
    """Raised when the API returns HTTP 404 (no such feed or dataset)."""

    hint = "Check the feed or dataset ID, e.g. with mobdb.search()."


class ConnectionError_(UpstreamError):
    """Raised on network-level failures (timeout, DNS, refused) after all retries.

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    hint = "Check your network connection and try again later."


GENERIC_ERROR_MESSAGE = "An unknown error occurred"


def extract_error_message(response: Any) -> str:
    """Pull a human-readable message out of an error response.

    Prefers the body's ``detail`` field, then ``message``, then a fixed
    generic string.  Bodies that are not JSON objects yield the generic
    string.

    Args:
        response: An :class:`httpx.Response` (anything with ``.json()``).
    """
    try:
        body = response.json()
    except ValueError:
        return GENERIC_ERROR_MESSAGE
    if isinstance(body, dict):
        for field in ("detail", "message"):
            value = body.get(field)
            if value:
                return value if isinstance(value, str) else str(value)
    return GENERIC_ERROR_MESSAGE
