"""HTTP client and response normalization for mobdb.

Classes:
    :class:`MobdbClient` -- blocking client backed by :class:`httpx.Client`
    with bearer auth, bounded retry, error mapping and cache-or-fetch.

Functions:
    :func:`normalize` -- map any known response envelope to a
    :class:`pandas.DataFrame`.

Example::

    from mobdb.client import MobdbClient

    with MobdbClient() as client:
        table = client.get_table("search", {"q": "Boston"})
"""

from mobdb.client.response import Envelope, detect_envelope, normalize
from mobdb.client.sync_client import MobdbClient, user_agent

__all__ = ["Envelope", "MobdbClient", "detect_envelope", "normalize", "user_agent"]
