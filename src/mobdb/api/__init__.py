"""Endpoint wrappers for the Mobility Database catalog.

Each wrapper validates its arguments before any network call, goes through
a :class:`~mobdb.client.MobdbClient` (the process default unless
``client=`` is given) and returns a :class:`pandas.DataFrame` for listings
or a ``dict`` for single records.
"""

from mobdb.api.base import get_client, reset_client, set_client
from mobdb.api.datasets import datasets, get_dataset
from mobdb.api.feeds import feed_url, feeds, get_feed
from mobdb.api.geo import extract_bbox, feeds_bbox
from mobdb.api.metadata import metadata
from mobdb.api.search import search

__all__ = [
    "datasets",
    "extract_bbox",
    "feed_url",
    "feeds",
    "feeds_bbox",
    "get_client",
    "get_dataset",
    "get_feed",
    "metadata",
    "reset_client",
    "search",
    "set_client",
]
