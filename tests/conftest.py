"""Shared test fixtures for mobdb.

Every test runs with isolated XDG directories, no ``MOBDB_*`` environment
variables, fresh process options and a plain (no-colour) output manager, so
nothing touches the real home directory or leaks state between tests.

The :class:`FakeCatalog` fixture stands in for the Mobility Database: it
answers the token exchange (patched ``httpx.post``) and serves canned JSON
through an :class:`httpx.MockTransport`, recording every call.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import httpx
import pytest

from mobdb.api.base import reset_client
from mobdb.auth.session import Session, reset_session
from mobdb.cache.store import CacheStore
from mobdb.client import MobdbClient
from mobdb.config import CACHE_PATH_ENV, REFRESH_TOKEN_ENV, reset_options, set_options
from mobdb.models import DEFAULT_BASE_URL, Options
from mobdb.output import OutputManager, reset_output, set_output

REFRESH_TOKEN = "refresh-abc"
ACCESS_TOKEN = "access-1"


# ---------------------------------------------------------------------------
# Global state isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point XDG directories into *tmp_path* and reset all process-global state."""
    monkeypatch.setattr("mobdb.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg-cache"))
    for var in (REFRESH_TOKEN_ENV, CACHE_PATH_ENV, "NO_COLOR"):
        monkeypatch.delenv(var, raising=False)

    set_options(Options())
    set_output(OutputManager(no_color=True))
    yield
    # cache_path() sets the variable directly on os.environ
    os.environ.pop(CACHE_PATH_ENV, None)
    reset_client()
    reset_session()
    reset_output()
    reset_options()


# ---------------------------------------------------------------------------
# Fake API
# ---------------------------------------------------------------------------


class FakeCatalog:
    """In-memory stand-in for the catalog API.

    Routes are keyed by path below the base URL (``"feeds"``,
    ``"gtfs_feeds/mdb-1/datasets"``).  A route holds a list of
    ``(status, body, headers)`` replies; each request consumes the first
    reply until only one is left, which then repeats.
    """

    def __init__(self) -> None:
        self.routes: dict[str, list[tuple[int, Any, dict[str, str]]]] = {}
        self.requests: list[httpx.Request] = []
        self.token_requests: list[dict[str, Any]] = []
        self.token_urls: list[str] = []
        self.access_tokens = [ACCESS_TOKEN]

    def add(
        self,
        path: str,
        body: Any = None,
        status: int = 200,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        self.routes.setdefault(path, []).append((status, body, headers or {}))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        prefix = httpx.URL(DEFAULT_BASE_URL).path.rstrip("/") + "/"
        path = request.url.path[len(prefix):]
        replies = self.routes.get(path)
        if not replies:
            return httpx.Response(404, json={"detail": f"No route for {path}"})
        status, body, headers = replies[0] if len(replies) == 1 else replies.pop(0)
        return httpx.Response(status, json=body, headers=headers)

    def post(self, url: str, json: Any = None, **kwargs: Any) -> httpx.Response:
        """Replacement for ``httpx.post`` used by the token exchange."""
        self.token_requests.append(json)
        self.token_urls.append(url)
        token = self.access_tokens[0] if len(self.access_tokens) == 1 else self.access_tokens.pop(0)
        return httpx.Response(
            200,
            json={"access_token": token},
            request=httpx.Request("POST", url),
        )

    def calls(self, path: str) -> int:
        prefix = httpx.URL(DEFAULT_BASE_URL).path.rstrip("/") + "/"
        return sum(1 for r in self.requests if r.url.path[len(prefix):] == path)


@pytest.fixture
def catalog(monkeypatch: pytest.MonkeyPatch) -> FakeCatalog:
    """A :class:`FakeCatalog` wired into the token exchange."""
    fake = FakeCatalog()
    monkeypatch.setattr("mobdb.auth.session.httpx.post", fake.post)
    return fake


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def store(cache_dir: Path) -> CacheStore:
    return CacheStore(cache_dir)


@pytest.fixture
def client(catalog: FakeCatalog, store: CacheStore) -> MobdbClient:
    """A client with a refresh token, a temp cache and the fake catalog transport."""
    mobdb_client = MobdbClient(
        session=Session(REFRESH_TOKEN),
        options=Options(),
        cache=store,
        transport=httpx.MockTransport(catalog.handler),
    )
    yield mobdb_client
    mobdb_client.close()
