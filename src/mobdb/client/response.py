"""Response normalization -- maps API bodies to a :class:`pandas.DataFrame`.

The catalog API wraps its rows in several envelope shapes:

- a bare JSON array of records;
- ``{"results": [...]}``, ``{"data": [...]}`` or ``{"feeds": [...]}``;
- anything else (a single object, a scalar list), which is coerced on a
  best-effort basis.

:func:`detect_envelope` classifies a body as one :class:`Envelope` variant
and :func:`normalize` dispatches to one function per variant, so the same
rows always produce the same table regardless of the envelope.

Nested structures are kept, not flattened: a cell holding a list of records
(e.g. a feed's ``locations``) becomes its own sub-``DataFrame``, and a cell
holding an object (e.g. ``source_info``) stays a ``dict``.
"""

from __future__ import annotations

import enum
from typing import Any, Callable

import httpx
import numpy as np
import pandas as pd


class Envelope(enum.Enum):
    """Shape of a decoded response body."""

    BARE_ARRAY = "bare_array"
    RESULTS = "results"
    DATA = "data"
    FEEDS = "feeds"
    OTHER = "other"


# Checked in this order; the first non-null field wins.
_WRAPPER_FIELDS = (Envelope.RESULTS, Envelope.DATA, Envelope.FEEDS)


def extract_response_data(response: httpx.Response) -> Any:
    """Decode a response body.

    Returns the parsed JSON, the raw text when the body is not JSON, or
    ``None`` for an empty body.
    """
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def detect_envelope(body: Any) -> Envelope:
    """Classify *body* as one of the known envelope shapes."""
    if isinstance(body, list) and all(isinstance(item, dict) for item in body):
        return Envelope.BARE_ARRAY
    if isinstance(body, dict):
        for envelope in _WRAPPER_FIELDS:
            if body.get(envelope.value) is not None:
                return envelope
    return Envelope.OTHER


def normalize(body: Any) -> pd.DataFrame:
    """Convert a decoded response body into a table.

    Args:
        body: Parsed JSON (``list``, ``dict``, scalar or ``None``).

    Returns:
        A :class:`pandas.DataFrame` with one row per record.

    Example::

        >>> normalize({"results": [{"id": 1}, {"id": 2}]})["id"].tolist()
        [1, 2]
    """
    envelope = detect_envelope(body)
    return _NORMALIZERS[envelope](body)


# ------------------------------------------------------------------ #
# Per-envelope normalizers
# ------------------------------------------------------------------ #


def _normalize_bare_array(body: list[dict[str, Any]]) -> pd.DataFrame:
    return records_to_frame(body)


def _normalize_results(body: dict[str, Any]) -> pd.DataFrame:
    return _coerce(body["results"])


def _normalize_data(body: dict[str, Any]) -> pd.DataFrame:
    return _coerce(body["data"])


def _normalize_feeds(body: dict[str, Any]) -> pd.DataFrame:
    return _coerce(body["feeds"])


def _normalize_other(body: Any) -> pd.DataFrame:
    return _coerce(body)


_NORMALIZERS: dict[Envelope, Callable[[Any], pd.DataFrame]] = {
    Envelope.BARE_ARRAY: _normalize_bare_array,
    Envelope.RESULTS: _normalize_results,
    Envelope.DATA: _normalize_data,
    Envelope.FEEDS: _normalize_feeds,
    Envelope.OTHER: _normalize_other,
}


# ------------------------------------------------------------------ #
# Table construction
# ------------------------------------------------------------------ #


def records_to_frame(records: list[dict[str, Any]]) -> pd.DataFrame:
    """Build a table from a list of records.

    Columns appear in first-seen order; records missing a field get
    ``None`` in that column.  Lists of records nested in a cell become
    sub-tables; an empty list in a column that holds such sub-tables
    becomes an empty table, so the column has one cell type.
    """
    columns: dict[str, None] = {}
    for record in records:
        for name in record:
            columns.setdefault(name, None)

    data = {
        name: _column(_cells([record.get(name) for record in records]))
        for name in columns
    }
    return pd.DataFrame(data, columns=list(columns), index=pd.RangeIndex(len(records)))


def _coerce(value: Any) -> pd.DataFrame:
    """Best-effort conversion of an arbitrary JSON value to a table."""
    if value is None:
        return pd.DataFrame()
    if isinstance(value, list):
        if all(isinstance(item, dict) for item in value):
            return records_to_frame(value)
        return pd.DataFrame({"value": _column([_cell(item) for item in value])})
    if isinstance(value, dict):
        return records_to_frame([value])
    return pd.DataFrame({"value": [value]})


def _is_record_list(value: Any) -> bool:
    return isinstance(value, list) and bool(value) and all(isinstance(v, dict) for v in value)


def _cell(value: Any) -> Any:
    if _is_record_list(value):
        return records_to_frame(value)
    return value


def _cells(values: list[Any]) -> list[Any]:
    """Convert one column's cells, giving empty lists the column's table type."""
    if not any(_is_record_list(v) for v in values):
        return values
    return [pd.DataFrame() if isinstance(v, list) and not v else _cell(v) for v in values]


def _column(values: list[Any]) -> Any:
    """Return column data, boxing structured cells into an object array.

    Plain scalars go through pandas dtype inference.  Tables, dicts and
    lists are placed one by one so numpy never tries to broadcast them.
    """
    if not any(isinstance(v, (pd.DataFrame, dict, list)) for v in values):
        return values
    boxed = np.empty(len(values), dtype=object)
    for i, value in enumerate(values):
        boxed[i] = value
    return boxed
