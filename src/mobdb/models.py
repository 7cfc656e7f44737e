"""Pydantic models and enumerations shared across mobdb.

**Configuration models** -- persisted as JSON in the user's config directory
and held in memory as the process-level options:
    :class:`RequestConfig`, :class:`CacheTTLConfig`, and :class:`Options`.

**Record models** -- returned by the cache layer:
    :class:`CacheEntry` and :class:`CacheInfo`.

**Query vocabulary** -- closed sets of values accepted by the endpoint
wrappers: :class:`EndpointClass`, :class:`DataType`, :class:`FeedStatus`,
:class:`BboxFilterMethod`, and the :class:`BoundingBox` value object.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_BASE_URL = "https://api.mobilitydatabase.org/v1"


# --- Vocabulary ---


class EndpointClass(str, enum.Enum):
    """Categories of API resource used to pick a cache freshness policy."""

    FEEDS = "feeds"
    SEARCH = "search"
    DATASETS = "datasets"
    HISTORICAL = "historical"


class DataType(str, enum.Enum):
    """Feed data types understood by the catalog."""

    GTFS = "gtfs"
    GTFS_RT = "gtfs_rt"
    GBFS = "gbfs"


class FeedStatus(str, enum.Enum):
    """Feed lifecycle states.

    ``DEVELOPMENT`` and ``FUTURE`` are only accepted by the bounding-box
    endpoint.
    """

    ACTIVE = "active"
    INACTIVE = "inactive"
    DEPRECATED = "deprecated"
    DEVELOPMENT = "development"
    FUTURE = "future"


class BboxFilterMethod(str, enum.Enum):
    """How a feed's coverage must relate to a bounding box."""

    COMPLETELY_ENCLOSED = "completely_enclosed"
    PARTIALLY_ENCLOSED = "partially_enclosed"
    DISJOINT = "disjoint"


class BoundingBox(BaseModel):
    """A WGS84 bounding box, validated by :func:`mobdb.api.geo.extract_bbox`."""

    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP request settings applied to every API call."""

    timeout: float = Field(default=30, description="Per-request timeout in seconds")
    max_tries: int = Field(default=3, ge=1, description="Total attempts per request")
    max_seconds: float = Field(
        default=120, description="Wall-clock budget for all attempts of one request"
    )


class CacheTTLConfig(BaseModel):
    """Maximum cache age, in hours, for each :class:`EndpointClass`.

    Feed listings change relatively often, search results should be fresh,
    and datasets are immutable snapshots.
    """

    feeds: float = 1
    search: float = 0.5
    datasets: float = 24
    historical: float = 24


class Options(BaseModel):
    """Process-level options, persisted at ``~/.config/mobdb/config.json``.

    Loaded lazily by :func:`~mobdb.config.get_options`.  The
    ``MOBDB_CACHE_PATH`` environment variable takes precedence over
    :attr:`cache_path`; see :func:`~mobdb.config.resolve_cache_dir`.
    """

    base_url: str = DEFAULT_BASE_URL
    cache_path: Optional[str] = Field(
        default=None, description="Cache directory override (tilde is expanded)"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
    cache_ttl: CacheTTLConfig = Field(default_factory=CacheTTLConfig)
    quiet: bool = Field(default=False, description="Suppress informational messages")


# --- Cache records ---


class CacheEntry(BaseModel):
    """One cached response file as seen by a directory listing."""

    name: str
    size: int = Field(description="File size in bytes")
    modified: datetime
    age_hours: float


class CacheInfo(BaseModel):
    """Summary of the cache directory."""

    path: str
    files: int
    size_mb: float
    exists: bool
