"""Helpers for pulling nested fields out of feed and search tables.

Search and feed tables keep nested structures as cells: ``source_info`` and
``latest_dataset`` are dicts, ``locations`` is a sub-table per feed.  These
functions flatten the parts callers most often need.
"""

from __future__ import annotations

from typing import Any, Optional

import pandas as pd

from mobdb.exceptions import ValidationError
from mobdb.output import get_output

LOCATION_COLUMNS = ["id", "provider", "country_code", "country", "subdivision_name", "municipality"]

DATASET_FIELDS = {
    "dataset_id": "id",
    "hosted_url": "hosted_url",
    "downloaded_at": "downloaded_at",
    "hash": "hash",
    "service_date_range_start": "service_date_range_start",
    "service_date_range_end": "service_date_range_end",
    "agency_timezone": "agency_timezone",
}

VALIDATION_TOTALS = ("total_error", "total_warning", "total_info")


def extract_urls(feeds: pd.DataFrame) -> list[Optional[str]]:
    """Return each feed's ``source_info.producer_url`` (``None`` when absent).

    Raises:
        ValidationError: If *feeds* is not a table with a ``source_info`` column.
    """
    _require_frame(feeds, "feeds")
    if feeds.empty:
        return []
    if "source_info" not in feeds.columns:
        raise ValidationError(
            "Column 'source_info' not found in feeds.",
            hint="Pass a table returned by mobdb.feeds() or mobdb.search().",
        )
    urls = []
    for info in feeds["source_info"]:
        url = info.get("producer_url") if isinstance(info, dict) else None
        urls.append(url or None)
    return urls


def extract_locations(results: pd.DataFrame, unnest: bool = True) -> pd.DataFrame:
    """Expand the ``locations`` column of a feed or search table.

    Args:
        results: Table from :func:`mobdb.search` or :func:`mobdb.feeds`.
        unnest: Return one row per feed-location pair.  When ``False``,
            return *results* with an added ``location_summary`` column
            (``"municipality, subdivision, country_code"`` joined by ``"; "``).
    """
    _require_frame(results, "results")
    if "locations" not in results.columns:
        get_output().warning(
            "Column 'locations' not found. This function works best with search results."
        )
        return results
    if results.empty:
        return results

    if not unnest:
        summarized = results.copy()
        summarized["location_summary"] = [
            _summarize_locations(cell) for cell in results["locations"]
        ]
        return summarized

    rows = []
    for _, feed in results.iterrows():
        for location in _records(feed["locations"]):
            rows.append(
                {
                    "id": feed.get("id"),
                    "provider": feed.get("provider"),
                    "country_code": location.get("country_code"),
                    "country": location.get("country"),
                    "subdivision_name": location.get("subdivision_name"),
                    "municipality": location.get("municipality"),
                }
            )
    return pd.DataFrame(rows, columns=LOCATION_COLUMNS)


def extract_datasets(results: pd.DataFrame) -> pd.DataFrame:
    """Flatten the ``latest_dataset`` of each feed into one row per feed.

    Validation report totals (``total_error``, ``total_warning``,
    ``total_info``) are added when any feed carries a report.
    """
    _require_frame(results, "results")
    if "latest_dataset" not in results.columns:
        get_output().warning(
            "Column 'latest_dataset' not found. This function works with search results."
        )
        return pd.DataFrame()
    if results.empty:
        return pd.DataFrame()

    rows = []
    has_report = False
    for _, feed in results.iterrows():
        dataset = feed["latest_dataset"] if isinstance(feed["latest_dataset"], dict) else {}
        row: dict[str, Any] = {"feed_id": feed.get("id"), "provider": feed.get("provider")}
        for column, field in DATASET_FIELDS.items():
            row[column] = dataset.get(field)
        report = dataset.get("validation_report")
        if isinstance(report, dict):
            has_report = True
            for total in VALIDATION_TOTALS:
                row[total] = report.get(total)
        rows.append(row)

    columns = ["feed_id", "provider", *DATASET_FIELDS]
    if has_report:
        columns.extend(VALIDATION_TOTALS)
    return pd.DataFrame(rows, columns=columns)


def _require_frame(value: Any, name: str) -> None:
    if not isinstance(value, pd.DataFrame):
        raise ValidationError(f"{name} must be a pandas DataFrame, got {type(value).__name__}.")


def _records(cell: Any) -> list[dict[str, Any]]:
    """Rows of a nested ``locations`` cell (sub-table or list of dicts)."""
    if isinstance(cell, pd.DataFrame):
        return cell.to_dict("records")
    if isinstance(cell, list):
        return [item for item in cell if isinstance(item, dict)]
    return []


def _summarize_locations(cell: Any) -> Optional[str]:
    parts = []
    for location in _records(cell):
        fields = (location.get(k) for k in ("municipality", "subdivision_name", "country_code"))
        parts.append(", ".join(str(f) for f in fields if f is not None and not pd.isna(f)))
    return "; ".join(parts) if parts else None
