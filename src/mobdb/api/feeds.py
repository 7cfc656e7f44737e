"""Feed listing and single-feed lookups."""

from __future__ import annotations

from typing import Any, Optional

import pandas as pd

from mobdb.api.base import match_choice, require_count, require_string, resolve_client
from mobdb.client import MobdbClient
from mobdb.exceptions import ValidationError
from mobdb.models import DataType, EndpointClass, FeedStatus
from mobdb.output import get_output

FEED_DATA_TYPES = tuple(t.value for t in DataType)
FEED_STATUSES = (
    FeedStatus.ACTIVE.value,
    FeedStatus.INACTIVE.value,
    FeedStatus.DEPRECATED.value,
)

_FEED_ENDPOINTS = {
    DataType.GTFS.value: "gtfs_feeds",
    DataType.GTFS_RT.value: "gtfs_rt_feeds",
    DataType.GBFS.value: "gbfs_feeds",
}


def feeds(
    provider: Optional[str] = None,
    country_code: Optional[str] = None,
    subdivision_name: Optional[str] = None,
    municipality: Optional[str] = None,
    data_type: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = 100,
    offset: int = 0,
    use_cache: bool = True,
    client: Optional[MobdbClient] = None,
) -> pd.DataFrame:
    """List feeds from the catalog.

    ``data_type`` selects the type-specific endpoint (``gtfs_feeds``,
    ``gtfs_rt_feeds`` or ``gbfs_feeds``); without it the generic ``feeds``
    endpoint is used, which does not support the location filters.

    Args:
        provider: Provider name (partial match).
        country_code: Two-letter ISO country code.
        subdivision_name: State or province.
        municipality: City.
        data_type: ``"gtfs"``, ``"gtfs_rt"`` or ``"gbfs"``.
        status: ``"active"``, ``"inactive"`` or ``"deprecated"``.
        limit: Maximum rows to return.
        offset: Rows to skip, for paging.
        use_cache: Serve from / save to the local cache.
        client: Client to use instead of the process default.

    Raises:
        ValidationError: For unknown choices, or location filters without
            ``data_type``.
    """
    if data_type is not None:
        data_type = match_choice(data_type, FEED_DATA_TYPES, "data_type")
    if status is not None:
        status = match_choice(status, FEED_STATUSES, "status")
    limit = require_count(limit, "limit")
    offset = require_count(offset, "offset")

    location_filters = (country_code, subdivision_name, municipality)
    if data_type is None and any(f is not None for f in location_filters):
        raise ValidationError(
            "Location filters require data_type to be specified.",
            hint='The feeds endpoint does not support filtering; pass data_type="gtfs", '
            '"gtfs_rt" or "gbfs" to use location filters.',
        )

    endpoint = _FEED_ENDPOINTS.get(data_type, "feeds")
    params = {
        "provider": provider,
        "country_code": country_code,
        "subdivision_name": subdivision_name,
        "municipality": municipality,
        "status": status,
        "limit": limit,
        "offset": offset,
    }
    client = resolve_client(client)
    return client.cached_table(
        "feeds",
        EndpointClass.FEEDS,
        {**params, "endpoint": endpoint},
        lambda: client.get_table(endpoint, params),
        use_cache=use_cache,
    )


def get_feed(feed_id: str, client: Optional[MobdbClient] = None) -> dict[str, Any]:
    """Fetch the full record of one feed.

    Raises:
        ValidationError: If *feed_id* is not a non-empty string.
        NotFoundError: If the catalog has no such feed.
    """
    require_string(feed_id, "feed_id")
    return resolve_client(client).get_json(f"feeds/{feed_id}")


def feed_url(feed_id: str, client: Optional[MobdbClient] = None) -> Optional[str]:
    """Return the download URL of a feed, or ``None`` (with a warning) if it has none.

    The URL is looked up in ``source_info.producer_url``, then
    ``urls.direct_download``, then ``direct_download_url``, then ``url``.
    """
    feed = get_feed(feed_id, client=client)
    url = (
        _nested(feed, "source_info", "producer_url")
        or _nested(feed, "urls", "direct_download")
        or feed.get("direct_download_url")
        or feed.get("url")
    )
    if not url:
        get_output().warning(f"No download URL found for feed {feed_id!r}.")
        return None
    return url


def _nested(record: dict[str, Any], outer: str, inner: str) -> Any:
    value = record.get(outer)
    if isinstance(value, dict):
        return value.get(inner)
    return None
