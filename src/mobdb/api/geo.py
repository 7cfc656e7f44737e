"""Geographic feed search by bounding box."""

from __future__ import annotations

import math
import numbers
from typing import Any, Mapping, Optional

import numpy as np
import pandas as pd

from mobdb.api.base import match_choice, require_count, resolve_client
from mobdb.client import MobdbClient
from mobdb.exceptions import ValidationError
from mobdb.models import BboxFilterMethod, BoundingBox, EndpointClass, FeedStatus

BBOX_STATUSES = tuple(s.value for s in FeedStatus)
FILTER_METHODS = tuple(m.value for m in BboxFilterMethod)

_MAPPING_KEYS = ("xmin", "ymin", "xmax", "ymax")


def extract_bbox(bbox: Any) -> BoundingBox:
    """Validate a bounding box given in one of the accepted forms.

    Accepted forms:

    - a 4-sequence ``(min_lon, min_lat, max_lon, max_lat)``, e.g. a tuple or
      a GeoPandas ``total_bounds`` array;
    - a mapping with ``xmin``, ``ymin``, ``xmax``, ``ymax`` keys;
    - a :class:`~mobdb.models.BoundingBox`.

    Raises:
        ValidationError: For the wrong shape, non-numeric values,
            coordinates out of range, or min not below max.
    """
    if isinstance(bbox, BoundingBox):
        coords = [bbox.min_lon, bbox.min_lat, bbox.max_lon, bbox.max_lat]
    elif isinstance(bbox, Mapping):
        missing = [k for k in _MAPPING_KEYS if k not in bbox]
        if missing:
            raise ValidationError(
                f"bbox mapping is missing {', '.join(missing)}.",
                hint="Provide xmin, ymin, xmax and ymax.",
            )
        coords = [bbox[k] for k in _MAPPING_KEYS]
    elif isinstance(bbox, (str, bytes)) or not hasattr(bbox, "__iter__"):
        raise ValidationError(
            f"bbox must be a sequence of 4 numbers, got {type(bbox).__name__}.",
            hint="Provide as (min_lon, min_lat, max_lon, max_lat).",
        )
    else:
        coords = list(bbox)
        if len(coords) != 4:
            raise ValidationError(
                f"bbox must have exactly 4 values, got {len(coords)}.",
                hint="Provide as (min_lon, min_lat, max_lon, max_lat).",
            )

    if not all(isinstance(c, numbers.Real) and not isinstance(c, bool) for c in coords):
        raise ValidationError(f"bbox values must be numeric, got {coords!r}.")

    min_lon, min_lat, max_lon, max_lat = (float(c) for c in coords)
    if not all(math.isfinite(c) for c in (min_lon, min_lat, max_lon, max_lat)):
        raise ValidationError(
            "bbox values must be finite numbers.",
            hint=f"You provided {min_lon:g}, {min_lat:g}, {max_lon:g}, {max_lat:g}.",
        )

    if min_lat < -90 or max_lat > 90:
        raise ValidationError(
            "Latitude values must be between -90 and 90.",
            hint=f"You provided min_lat={min_lat:g}, max_lat={max_lat:g}.",
        )
    if min_lon < -180 or max_lon > 180:
        raise ValidationError(
            "Longitude values must be between -180 and 180.",
            hint=f"You provided min_lon={min_lon:g}, max_lon={max_lon:g}.",
        )
    if min_lon >= max_lon:
        raise ValidationError(
            "min_lon must be less than max_lon.",
            hint=f"You provided min_lon={min_lon:g}, max_lon={max_lon:g}.",
        )
    if min_lat >= max_lat:
        raise ValidationError(
            "min_lat must be less than max_lat.",
            hint=f"You provided min_lat={min_lat:g}, max_lat={max_lat:g}.",
        )

    return BoundingBox(min_lon=min_lon, min_lat=min_lat, max_lon=max_lon, max_lat=max_lat)


def feeds_bbox(
    bbox: Any,
    filter_method: str = "completely_enclosed",
    provider: Optional[str] = None,
    country_code: Optional[str] = None,
    subdivision_name: Optional[str] = None,
    municipality: Optional[str] = None,
    status: Optional[str] = None,
    official: Optional[bool] = None,
    limit: int = 100,
    offset: int = 0,
    use_cache: bool = True,
    client: Optional[MobdbClient] = None,
) -> pd.DataFrame:
    """Find GTFS feeds whose coverage relates to a bounding box.

    Args:
        bbox: Bounding box; see :func:`extract_bbox` for accepted forms.
        filter_method: ``"completely_enclosed"`` (feed inside the box),
            ``"partially_enclosed"`` (feed overlaps the box) or
            ``"disjoint"`` (feed outside the box).
        provider: Provider name (partial match).
        country_code: Two-letter ISO country code.
        subdivision_name: State or province.
        municipality: City.
        status: ``"active"``, ``"deprecated"``, ``"inactive"``,
            ``"development"`` or ``"future"``.
        official: Keep only official (``True``) or unofficial (``False``)
            feeds.  Rows whose ``official`` flag is missing are dropped.
        limit: Maximum rows to request.
        offset: Rows to skip, for paging.
        use_cache: Serve from / save to the local cache.
        client: Client to use instead of the process default.

    Example::

        bay_area = feeds_bbox((-122.5, 37.2, -121.8, 38.0), filter_method="partially_enclosed")
    """
    box = extract_bbox(bbox)
    filter_method = match_choice(filter_method, FILTER_METHODS, "filter_method")
    if status is not None:
        status = match_choice(status, BBOX_STATUSES, "status")
    if official is not None and not isinstance(official, bool):
        raise ValidationError(f"official must be True, False or None, got {official!r}.")
    limit = require_count(limit, "limit")
    offset = require_count(offset, "offset")

    key_params = {
        "min_lon": box.min_lon,
        "min_lat": box.min_lat,
        "max_lon": box.max_lon,
        "max_lat": box.max_lat,
        "filter_method": filter_method,
        "provider": provider,
        "country_code": country_code,
        "subdivision_name": subdivision_name,
        "municipality": municipality,
        "status": status,
        "official": official,
        "limit": limit,
        "offset": offset,
    }
    query = {
        "provider": provider,
        "country_code": country_code,
        "subdivision_name": subdivision_name,
        "municipality": municipality,
        "status": status,
        "official": official,
        "dataset_latitudes": f"{box.min_lat},{box.max_lat}",
        "dataset_longitudes": f"{box.min_lon},{box.max_lon}",
        "bounding_filter_method": filter_method,
        "limit": limit,
        "offset": offset,
    }
    client = resolve_client(client)

    def fetch() -> pd.DataFrame:
        table = client.get_table("gtfs_feeds", query)
        return filter_official(table, official)

    return client.cached_table(
        "feeds_bbox", EndpointClass.FEEDS, key_params, fetch, use_cache=use_cache
    )


def filter_official(table: pd.DataFrame, official: Optional[bool]) -> pd.DataFrame:
    """Keep rows whose ``official`` flag equals *official*.

    The server-side filter is not trusted to handle missing flags, so rows
    without a boolean ``official`` value are dropped whenever a filter is set.
    """
    if official is None or table.empty:
        return table
    if "official" not in table.columns:
        return table.iloc[0:0]
    mask = table["official"].map(lambda v: isinstance(v, (bool, np.bool_)) and bool(v) == official)
    return table[mask.astype(bool)].reset_index(drop=True)
