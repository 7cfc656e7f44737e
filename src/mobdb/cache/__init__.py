"""Local filesystem cache for API responses.

- :func:`derive_key` -- stable file name for a parameter set.
- :class:`CacheStore` -- read/write/list/clear entries with age-based expiry.
- :func:`get_cache_ttl` -- freshness policy per endpoint class.
- :func:`cache_path`, :func:`cache_info`, :func:`cache_list`,
  :func:`cache_clear` -- user-facing management helpers.
"""

from mobdb.cache.keys import CACHE_EXTENSION, derive_key, effective_params
from mobdb.cache.manage import cache_clear, cache_info, cache_list, cache_path
from mobdb.cache.store import CacheStore
from mobdb.cache.ttl import get_cache_ttl

__all__ = [
    "CACHE_EXTENSION",
    "CacheStore",
    "cache_clear",
    "cache_info",
    "cache_list",
    "cache_path",
    "derive_key",
    "effective_params",
    "get_cache_ttl",
]
