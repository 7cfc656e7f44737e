"""Freshness policy per endpoint class."""

from __future__ import annotations

from typing import Optional, Union

from mobdb.config import get_options
from mobdb.exceptions import ValidationError
from mobdb.models import CacheTTLConfig, EndpointClass


def get_cache_ttl(
    endpoint_class: Union[EndpointClass, str],
    config: Optional[CacheTTLConfig] = None,
) -> float:
    """Return the maximum cache age in hours for *endpoint_class*.

    Args:
        endpoint_class: One of ``feeds``, ``search``, ``datasets``,
            ``historical``.
        config: TTL table to consult.  Defaults to ``cache_ttl`` in the
            process options.

    Raises:
        ValidationError: For an unknown endpoint class.
    """
    try:
        endpoint_class = EndpointClass(endpoint_class)
    except ValueError:
        valid = ", ".join(e.value for e in EndpointClass)
        raise ValidationError(
            f"Unknown endpoint class {endpoint_class!r}.",
            hint=f"Use one of: {valid}.",
        ) from None
    if config is None:
        config = get_options().cache_ttl
    return getattr(config, endpoint_class.value)
