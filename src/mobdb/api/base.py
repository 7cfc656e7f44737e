"""Shared plumbing for the endpoint wrappers.

Holds the process-default :class:`~mobdb.client.MobdbClient` and the
argument checks every wrapper runs before touching the network.
"""

from __future__ import annotations

import enum
import numbers
from typing import Any, Iterable, Optional

from mobdb.client import MobdbClient
from mobdb.exceptions import ValidationError

_client: Optional[MobdbClient] = None


def get_client() -> MobdbClient:
    """Return the process-default client, creating it lazily."""
    global _client
    if _client is None:
        _client = MobdbClient()
    return _client


def set_client(client: MobdbClient) -> None:
    """Install *client* as the process-default client."""
    global _client
    _client = client


def reset_client() -> None:
    """Close and drop the process-default client."""
    global _client
    if _client is not None:
        _client.close()
    _client = None


def resolve_client(client: Optional[MobdbClient]) -> MobdbClient:
    return client if client is not None else get_client()


def require_string(value: Any, name: str) -> str:
    """Check that *value* is a non-empty string."""
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{name} must be a non-empty character string.")
    return value


def require_count(value: Any, name: str) -> int:
    """Check that *value* is a non-negative integer."""
    if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value < 0:
        raise ValidationError(f"{name} must be a non-negative integer, got {value!r}.")
    return int(value)


def match_choice(value: Any, choices: Iterable[str], name: str) -> str:
    """Return *value* (a string or enum member) if it is one of *choices*."""
    choices = tuple(choices)
    if isinstance(value, enum.Enum):
        value = value.value
    if value not in choices:
        raise ValidationError(
            f"{name} must be one of {', '.join(repr(c) for c in choices)}, got {value!r}.",
        )
    return value
