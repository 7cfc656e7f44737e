"""Synchronous HTTP client with auth, retry, error mapping and caching.

This module provides :class:`MobdbClient`, the blocking client every
endpoint wrapper goes through.  It wraps :class:`httpx.Client` and layers
on:

- **Auth injection** -- a bearer access token from the
  :class:`~mobdb.auth.session.Session`, refreshed once on 401/403.
- **Retry with backoff** -- retries on 5xx, 429 and network errors with
  exponential delay (1 s, 2 s, 4 s, ...) bounded by ``max_tries`` and the
  ``max_seconds`` wall-clock budget.
- **Error mapping** -- non-2xx responses become
  :class:`~mobdb.exceptions.UpstreamError` subclasses carrying the message
  from the body's ``detail`` or ``message`` field.
- **Rate-limit advisory** -- a warning when fewer than 10% of the
  ``x-ratelimit-limit`` requests remain.
- **Cache-or-fetch** -- :meth:`MobdbClient.cached_table` consults the
  :class:`~mobdb.cache.CacheStore` before calling the network.
"""

from __future__ import annotations

import enum
import logging
import pickle
import platform
import time
from typing import Any, Callable, Mapping, Optional, TypeVar, Union

import httpx
import pandas as pd

from mobdb import __version__
from mobdb.auth.session import Session, get_session
from mobdb.cache.keys import derive_key
from mobdb.cache.store import CacheStore
from mobdb.cache.ttl import get_cache_ttl
from mobdb.client.response import extract_response_data, normalize
from mobdb.config import get_options
from mobdb.exceptions import (
    AuthenticationError,
    ConnectionError_,
    NotFoundError,
    UpstreamError,
    extract_error_message,
)
from mobdb.models import EndpointClass, Options
from mobdb.output import get_output

logger = logging.getLogger(__name__)

T = TypeVar("T")

RATE_LIMIT_THRESHOLD = 0.1
_RETRY_STATUSES = frozenset({429})
_AUTH_STATUSES = frozenset({401, 403})


def user_agent() -> str:
    """Client identification sent with every request."""
    return f"mobdb/{__version__} (Python {platform.python_version()})"


class MobdbClient:
    """Synchronous client for the Mobility Database API.

    Args:
        session: Credential context.  Defaults to the process-default
            session.
        options: Base URL, request and cache-TTL settings.  Defaults to the
            process options.
        cache: Response cache.  Defaults to a :class:`CacheStore` that
            resolves its directory on every call.
        transport: Optional :class:`httpx.BaseTransport`, e.g. an
            :class:`httpx.MockTransport` in tests.

    The underlying :class:`httpx.Client` is opened on first use; call
    :meth:`close` or use the client as a context manager to release it.

    Example::

        with MobdbClient(Session("my-refresh-token")) as client:
            table = client.get_table("feeds", {"provider": "BART"})
    """

    def __init__(
        self,
        session: Optional[Session] = None,
        options: Optional[Options] = None,
        cache: Optional[CacheStore] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._session = session
        self._options = options
        self._cache = cache
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def session(self) -> Session:
        return self._session if self._session is not None else get_session()

    @property
    def options(self) -> Options:
        return self._options if self._options is not None else get_options()

    @property
    def cache(self) -> CacheStore:
        if self._cache is None:
            self._cache = CacheStore()
        return self._cache

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def __enter__(self) -> MobdbClient:
        self._http()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying :class:`httpx.Client`."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self.options.request.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    def build_request(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> httpx.Request:
        """Compose an authenticated GET request.

        Args:
            endpoint: Path below the base URL, e.g. ``"gtfs_feeds/mdb-1/datasets"``.
            params: Query parameters.  ``None`` values are dropped.

        Raises:
            AuthenticationError: If no access token can be obtained.
        """
        url = f"{self.options.base_url.rstrip('/')}/{endpoint.lstrip('/')}"
        query = {
            name: _query_value(value)
            for name, value in (params or {}).items()
            if value is not None
        }
        token = self.session.get_access_token(options=self.options)
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            "User-Agent": user_agent(),
        }
        return self._http().build_request("GET", url, params=query, headers=headers)

    def send(self, request: httpx.Request) -> httpx.Response:
        """Send *request* with retry, one token refresh on 401/403, and error mapping.

        Returns:
            The successful :class:`httpx.Response`.

        Raises:
            AuthenticationError: On 401/403 after a forced token refresh.
            NotFoundError: On 404.
            UpstreamError: On any other non-2xx status after all retries.
            ConnectionError_: On network / timeout errors after all retries.
        """
        config = self.options.request
        deadline = time.monotonic() + config.max_seconds
        output = get_output()
        refreshed = False
        response: Optional[httpx.Response] = None
        attempt = 0

        while attempt < config.max_tries:
            attempt += 1
            try:
                response = self._http().send(request)
            except httpx.TransportError as exc:
                delay = self._retry_delay(attempt, deadline)
                if delay is None:
                    raise ConnectionError_(
                        f"Connection failed after {attempt} attempt(s): {exc}"
                    ) from exc
                output.debug(
                    f"Connection error: {exc}, retrying in {delay:g}s "
                    f"(attempt {attempt}/{config.max_tries})"
                )
                time.sleep(delay)
                continue

            if response.status_code in _AUTH_STATUSES and not refreshed:
                refreshed = True
                attempt -= 1
                output.debug(f"HTTP {response.status_code}, refreshing access token")
                token = self.session.get_access_token(force=True, options=self.options)
                request.headers["Authorization"] = f"Bearer {token}"
                continue

            if _is_retryable(response.status_code):
                delay = self._retry_delay(attempt, deadline)
                if delay is not None:
                    output.debug(
                        f"Server error {response.status_code}, retrying in {delay:g}s "
                        f"(attempt {attempt}/{config.max_tries})"
                    )
                    time.sleep(delay)
                    continue
            break

        assert response is not None
        self._map_response_error(response)
        self.check_rate_limit(response)
        return response

    def get_json(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """GET *endpoint* and return the decoded body."""
        response = self.send(self.build_request(endpoint, params))
        return extract_response_data(response)

    def get_table(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> pd.DataFrame:
        """GET *endpoint* and return the body as a normalized table."""
        return normalize(self.get_json(endpoint, params))

    def check_rate_limit(self, response: httpx.Response) -> None:
        """Warn when the remaining request quota drops below 10% of the limit."""
        limit = response.headers.get("x-ratelimit-limit")
        remaining = response.headers.get("x-ratelimit-remaining")
        if limit is None or remaining is None:
            return
        try:
            limit_num = float(limit)
            remaining_num = float(remaining)
        except ValueError:
            return
        if limit_num > 0 and remaining_num / limit_num < RATE_LIMIT_THRESHOLD:
            output = get_output()
            output.warning(
                f"Approaching rate limit: {remaining_num:g} of {limit_num:g} "
                "requests remaining."
            )
            output.suggest("Consider spacing out your requests.")

    # ------------------------------------------------------------------ #
    # Cache-or-fetch
    # ------------------------------------------------------------------ #

    def cached_table(
        self,
        prefix: str,
        endpoint_class: Union[EndpointClass, str],
        params: Mapping[str, Any],
        fetch: Callable[[], T],
        use_cache: bool = True,
    ) -> T:
        """Return a cached result for *params*, or call *fetch* and cache it.

        Args:
            prefix: Cache key prefix naming the resource, e.g. ``"feeds"``.
            endpoint_class: Selects the maximum cache age.
            params: Every argument that shapes the result; hashed into the key.
            fetch: Called on a miss; its result is written to the cache.
            use_cache: ``False`` neither reads nor writes the cache.
        """
        if not use_cache:
            return fetch()

        key = derive_key(params, prefix)
        max_age = get_cache_ttl(endpoint_class, self.options.cache_ttl)
        cached = self.cache.read(key, max_age_hours=max_age)
        if cached is not None:
            return cached

        result = fetch()
        try:
            self.cache.write(result, key)
        except (OSError, pickle.PicklingError):
            logger.warning("Could not write cache entry %s", key, exc_info=True)
        return result

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _retry_delay(self, attempt: int, deadline: float) -> Optional[float]:
        """Backoff before the next attempt, or ``None`` when retries are exhausted."""
        if attempt >= self.options.request.max_tries:
            return None
        delay = float(2 ** (attempt - 1))
        if time.monotonic() + delay > deadline:
            return None
        return delay

    def _map_response_error(self, response: httpx.Response) -> None:
        """Raise a typed exception for error HTTP status codes."""
        status = response.status_code
        if status < 400:
            return

        msg = extract_error_message(response)
        if status in _AUTH_STATUSES:
            raise AuthenticationError(f"HTTP {status}: {msg}")
        if status == 404:
            raise NotFoundError(msg, status_code=status)
        raise UpstreamError(msg, status_code=status)


def _is_retryable(status: int) -> bool:
    return status >= 500 or status in _RETRY_STATUSES


def _query_value(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    return value
