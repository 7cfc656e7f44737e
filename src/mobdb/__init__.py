"""mobdb -- Python client for the Mobility Database catalog API.

This package authenticates against the Mobility Database, queries its feed,
dataset and search endpoints, normalizes the heterogeneous JSON envelopes
into :class:`pandas.DataFrame` tables, and caches results on the local
filesystem with per-endpoint freshness.

Typical workflow::

    import mobdb

    mobdb.set_key("your_refresh_token")
    bart = mobdb.feeds(provider="BART", data_type="gtfs")
    history = mobdb.datasets(bart["id"][0], latest=False)

Modules:
    api: Endpoint wrappers (feeds, datasets, search, bounding box).
    auth: Refresh/access token session and credential store.
    cache: Cache key derivation, filesystem store, TTL policy.
    client: HTTP client and response normalization.
    config: XDG-aware configuration and cache directory resolution.
    exceptions: Exception hierarchy with remediation hints.
    helpers: Flatten nested columns of result tables.
    output: stderr diagnostics with Rich support.
"""

__version__ = "0.1.0"

from mobdb.api import (
    datasets,
    extract_bbox,
    feed_url,
    feeds,
    feeds_bbox,
    get_client,
    get_dataset,
    get_feed,
    metadata,
    reset_client,
    search,
    set_client,
)
from mobdb.auth import Session, get_session, has_key, set_key
from mobdb.cache import cache_clear, cache_info, cache_list, cache_path, get_cache_ttl
from mobdb.client import MobdbClient, normalize
from mobdb.exceptions import (
    AuthenticationError,
    ConfigError,
    ConnectionError_,
    MobdbError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from mobdb.helpers import extract_datasets, extract_locations, extract_urls

__all__ = [
    "AuthenticationError",
    "ConfigError",
    "ConnectionError_",
    "MobdbClient",
    "MobdbError",
    "NotFoundError",
    "Session",
    "UpstreamError",
    "ValidationError",
    "__version__",
    "cache_clear",
    "cache_info",
    "cache_list",
    "cache_path",
    "datasets",
    "extract_bbox",
    "extract_datasets",
    "extract_locations",
    "extract_urls",
    "feed_url",
    "feeds",
    "feeds_bbox",
    "get_cache_ttl",
    "get_client",
    "get_dataset",
    "get_feed",
    "get_session",
    "has_key",
    "metadata",
    "normalize",
    "reset_client",
    "search",
    "set_client",
    "set_key",
]
