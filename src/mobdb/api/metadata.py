"""API metadata."""

from __future__ import annotations

from typing import Any, Optional

from mobdb.api.base import resolve_client
from mobdb.client import MobdbClient


def metadata(client: Optional[MobdbClient] = None) -> dict[str, Any]:
    """Return the API's version information."""
    return resolve_client(client).get_json("metadata")
