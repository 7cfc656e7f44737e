"""Free-text search across the catalog."""

from __future__ import annotations

from typing import Optional

import pandas as pd

from mobdb.api.base import match_choice, require_count, require_string, resolve_client
from mobdb.client import MobdbClient
from mobdb.models import DataType, EndpointClass

SEARCH_DATA_TYPES = (DataType.GTFS.value, DataType.GTFS_RT.value)


def search(
    query: str,
    data_type: Optional[str] = None,
    country_code: Optional[str] = None,
    limit: int = 50,
    use_cache: bool = True,
    client: Optional[MobdbClient] = None,
) -> pd.DataFrame:
    """Search feeds by provider, location or feed name.

    Args:
        query: Search text.
        data_type: ``"gtfs"`` or ``"gtfs_rt"``.
        country_code: Two-letter ISO country code.
        limit: Maximum rows to return.
        use_cache: Serve from / save to the local cache.
        client: Client to use instead of the process default.

    Example::

        results = search("Bay Area", data_type="gtfs")
    """
    require_string(query, "query")
    if data_type is not None:
        data_type = match_choice(data_type, SEARCH_DATA_TYPES, "data_type")
    limit = require_count(limit, "limit")

    params = {
        "q": query,
        "data_type": data_type,
        "country_code": country_code,
        "limit": limit,
    }
    client = resolve_client(client)
    return client.cached_table(
        "search",
        EndpointClass.SEARCH,
        params,
        lambda: client.get_table("search", params),
        use_cache=use_cache,
    )
