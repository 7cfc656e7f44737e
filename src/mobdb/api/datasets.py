"""Historical dataset snapshots of a GTFS feed."""

from __future__ import annotations

from typing import Any, Optional

import pandas as pd

from mobdb.api.base import require_string, resolve_client
from mobdb.client import MobdbClient
from mobdb.models import EndpointClass


def datasets(
    feed_id: str,
    latest: bool = True,
    use_cache: bool = True,
    client: Optional[MobdbClient] = None,
) -> pd.DataFrame:
    """List the datasets of a GTFS feed.

    Args:
        feed_id: Feed identifier, e.g. ``"mdb-53"``.
        latest: Only return the most recent dataset.
        use_cache: Serve from / save to the local cache.  Datasets are
            immutable, so entries stay fresh for a day by default.
        client: Client to use instead of the process default.
    """
    require_string(feed_id, "feed_id")
    client = resolve_client(client)
    query = {"latest": "true" if latest else None}
    return client.cached_table(
        "datasets",
        EndpointClass.DATASETS,
        {"feed_id": feed_id, "latest": latest},
        lambda: client.get_table(f"gtfs_feeds/{feed_id}/datasets", query),
        use_cache=use_cache,
    )


def get_dataset(dataset_id: str, client: Optional[MobdbClient] = None) -> dict[str, Any]:
    """Fetch one GTFS dataset, including its validation report."""
    require_string(dataset_id, "dataset_id")
    return resolve_client(client).get_json(f"datasets/gtfs/{dataset_id}")
