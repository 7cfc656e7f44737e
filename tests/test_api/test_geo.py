"""Tests for bounding-box validation and the bbox feed search."""

from __future__ import annotations

import math

import numpy as np
import pandas as pd
import pytest

from mobdb.api.geo import extract_bbox, feeds_bbox, filter_official
from mobdb.client import MobdbClient
from mobdb.exceptions import ValidationError
from mobdb.models import BoundingBox

BAY_AREA = (-122.5, 37.2, -121.8, 38.0)


# ---------------------------------------------------------------------------
# extract_bbox
# ---------------------------------------------------------------------------


class TestExtractBbox:
    @pytest.mark.parametrize(
        "bbox",
        [
            BAY_AREA,
            list(BAY_AREA),
            np.array(BAY_AREA),
            {"xmin": -122.5, "ymin": 37.2, "xmax": -121.8, "ymax": 38.0},
            BoundingBox(min_lon=-122.5, min_lat=37.2, max_lon=-121.8, max_lat=38.0),
        ],
    )
    def test_accepted_forms(self, bbox: object) -> None:
        box = extract_bbox(bbox)
        assert (box.min_lon, box.min_lat, box.max_lon, box.max_lat) == BAY_AREA

    def test_integers_accepted(self) -> None:
        assert extract_bbox((0, 0, 1, 1)).max_lat == 1.0

    @pytest.mark.parametrize(
        "bbox, match",
        [
            ((1, 2, 3), "exactly 4 values"),
            ("1,2,3,4", "sequence of 4 numbers"),
            (42, "sequence of 4 numbers"),
            ({"xmin": 0, "ymin": 0, "xmax": 1}, "missing ymax"),
            ((0, 0, "1", 1), "numeric"),
            ((0, 0, True, 1), "numeric"),
            ((0, -91, 1, 1), "Latitude"),
            ((-181, 0, 1, 1), "Longitude"),
            ((1, 0, 1, 1), "min_lon must be less than max_lon"),
            ((0, 2, 1, 1), "min_lat must be less than max_lat"),
            ((math.nan, 0, 10, 10), "finite"),
            ((0, 0, 10, math.inf), "finite"),
            ({"xmin": 0, "ymin": np.nan, "xmax": 1, "ymax": 1}, "finite"),
        ],
    )
    def test_rejected(self, bbox: object, match: str) -> None:
        with pytest.raises(ValidationError, match=match):
            extract_bbox(bbox)

    def test_hint_names_values(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            extract_bbox((0, 95, 1, 96))
        assert exc_info.value.hint == "You provided min_lat=95, max_lat=96."


# ---------------------------------------------------------------------------
# feeds_bbox
# ---------------------------------------------------------------------------


FEEDS = [
    {"id": "mdb-1", "provider": "BART", "official": True},
    {"id": "mdb-2", "provider": "Muni", "official": False},
    {"id": "mdb-3", "provider": "Caltrain", "official": None},
]


class TestFeedsBbox:
    def test_query_params(self, client: MobdbClient, catalog) -> None:
        catalog.add("gtfs_feeds", FEEDS)
        table = feeds_bbox(BAY_AREA, filter_method="partially_enclosed", client=client)
        assert len(table) == 3
        params = catalog.requests[-1].url.params
        assert params["dataset_latitudes"] == "37.2,38.0"
        assert params["dataset_longitudes"] == "-122.5,-121.8"
        assert params["bounding_filter_method"] == "partially_enclosed"
        assert "official" not in params

    def test_official_post_filter(self, client: MobdbClient, catalog) -> None:
        catalog.add("gtfs_feeds", FEEDS)
        assert feeds_bbox(BAY_AREA, official=True, client=client)["id"].tolist() == ["mdb-1"]
        assert feeds_bbox(BAY_AREA, official=False, client=client)["id"].tolist() == ["mdb-2"]
        assert catalog.requests[-1].url.params["official"] == "false"

    def test_cached(self, client: MobdbClient, catalog) -> None:
        catalog.add("gtfs_feeds", FEEDS)
        feeds_bbox(BAY_AREA, client=client)
        feeds_bbox(list(BAY_AREA), client=client)
        assert catalog.calls("gtfs_feeds") == 1

    @pytest.mark.parametrize(
        "kwargs",
        [{"filter_method": "touching"}, {"status": "paused"}, {"official": "yes"}, {"offset": -5}],
    )
    def test_invalid_arguments(self, client: MobdbClient, catalog, kwargs: dict) -> None:
        with pytest.raises(ValidationError):
            feeds_bbox(BAY_AREA, client=client, **kwargs)
        assert catalog.requests == []

    def test_invalid_bbox_makes_no_request(self, client: MobdbClient, catalog) -> None:
        with pytest.raises(ValidationError):
            feeds_bbox((0, 0, 0, 0), client=client)
        assert catalog.requests == []

    def test_nan_bbox_makes_no_request(self, client: MobdbClient, catalog) -> None:
        with pytest.raises(ValidationError, match="finite"):
            feeds_bbox((math.nan, 0.0, 10.0, 10.0), client=client)
        assert catalog.requests == []


class TestFilterOfficial:
    def test_none_is_passthrough(self) -> None:
        table = pd.DataFrame(FEEDS)
        assert filter_official(table, None) is table

    def test_missing_column_gives_empty(self) -> None:
        table = pd.DataFrame([{"id": "mdb-1"}])
        assert filter_official(table, True).empty

    def test_bool_dtype_column(self) -> None:
        table = pd.DataFrame({"id": ["a", "b"], "official": [True, False]})
        assert filter_official(table, False)["id"].tolist() == ["b"]
