"""Cache key derivation.

A key is ``{prefix}_{md5}.pkl.gz`` where the digest covers the effective
query parameters: ``None`` values are dropped and the remainder is sorted
by name, so that argument order and explicit-``None`` versus omitted
arguments never change the key.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping, Optional

CACHE_EXTENSION = ".pkl.gz"
"""Suffix of every cache entry file."""

DEFAULT_PREFIX = "mobdb"


def effective_params(params: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Return *params* without ``None`` values, sorted by name."""
    if not params:
        return {}
    return {name: params[name] for name in sorted(params) if params[name] is not None}


def derive_key(params: Optional[Mapping[str, Any]], prefix: str = DEFAULT_PREFIX) -> str:
    """Derive the cache file name for a parameter set.

    Args:
        params: Query parameters.  ``None`` values are ignored.
        prefix: Endpoint-class prefix, e.g. ``"feeds"`` or ``"search"``.

    Returns:
        A file name of the form ``{prefix}_{hash}.pkl.gz``.

    Example::

        >>> derive_key({"b": 2, "a": 1}, "p") == derive_key({"a": 1, "b": 2, "c": None}, "p")
        True
    """
    raw = json.dumps(effective_params(params), sort_keys=True, separators=(",", ":"), default=str)
    digest = hashlib.md5(raw.encode("utf-8")).hexdigest()
    return f"{prefix}_{digest}{CACHE_EXTENSION}"
