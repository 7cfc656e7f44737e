"""Tests for the feed listing and lookup wrappers."""

from __future__ import annotations

import numpy as np
import pytest

from mobdb.api.feeds import feed_url, feeds, get_feed
from mobdb.api.metadata import metadata
from mobdb.client import MobdbClient
from mobdb.exceptions import NotFoundError, ValidationError

FEED_ROWS = [
    {"id": "mdb-1", "provider": "BART", "status": "active"},
    {"id": "mdb-2", "provider": "AC Transit", "status": "active"},
]


class TestFeeds:
    def test_generic_endpoint(self, client: MobdbClient, catalog) -> None:
        catalog.add("feeds", FEED_ROWS)
        table = feeds(provider="BART", client=client)
        assert table["id"].tolist() == ["mdb-1", "mdb-2"]
        params = catalog.requests[-1].url.params
        assert params["provider"] == "BART"
        assert params["limit"] == "100"
        assert params["offset"] == "0"
        assert "status" not in params

    @pytest.mark.parametrize(
        "data_type, endpoint",
        [("gtfs", "gtfs_feeds"), ("gtfs_rt", "gtfs_rt_feeds"), ("gbfs", "gbfs_feeds")],
    )
    def test_data_type_routes_endpoint(self, client: MobdbClient, catalog, data_type: str, endpoint: str) -> None:
        catalog.add(endpoint, FEED_ROWS)
        feeds(data_type=data_type, client=client)
        assert catalog.calls(endpoint) == 1
        assert "data_type" not in catalog.requests[-1].url.params

    def test_location_filters_need_data_type(self, client: MobdbClient, catalog) -> None:
        with pytest.raises(ValidationError, match="Location filters require data_type"):
            feeds(country_code="US", client=client)
        assert catalog.requests == []

    def test_location_filters_with_data_type(self, client: MobdbClient, catalog) -> None:
        catalog.add("gtfs_feeds", FEED_ROWS)
        feeds(data_type="gtfs", country_code="US", municipality="Oakland", client=client)
        params = catalog.requests[-1].url.params
        assert params["country_code"] == "US"
        assert params["municipality"] == "Oakland"

    @pytest.mark.parametrize(
        "kwargs",
        [{"data_type": "csv"}, {"status": "future"}, {"limit": -1}, {"limit": 2.5}, {"offset": True}],
    )
    def test_invalid_arguments(self, client: MobdbClient, catalog, kwargs: dict) -> None:
        with pytest.raises(ValidationError):
            feeds(client=client, **kwargs)
        assert catalog.requests == []

    def test_status_passed_through(self, client: MobdbClient, catalog) -> None:
        catalog.add("feeds", FEED_ROWS)
        feeds(status="deprecated", client=client)
        assert catalog.requests[-1].url.params["status"] == "deprecated"

    def test_cached_between_calls(self, client: MobdbClient, catalog) -> None:
        catalog.add("feeds", FEED_ROWS)
        feeds(provider="BART", client=client)
        feeds(provider="BART", client=client)
        assert catalog.calls("feeds") == 1

    def test_numpy_integer_limit_accepted(self, client: MobdbClient, catalog) -> None:
        catalog.add("feeds", FEED_ROWS)
        feeds(limit=np.int64(5), client=client)
        assert catalog.requests[-1].url.params["limit"] == "5"
        feeds(limit=5, client=client)
        assert catalog.calls("feeds") == 1

    def test_data_type_is_part_of_cache_key(self, client: MobdbClient, catalog) -> None:
        catalog.add("gtfs_feeds", FEED_ROWS[:1])
        catalog.add("gbfs_feeds", FEED_ROWS[1:])
        assert feeds(data_type="gtfs", client=client)["id"].tolist() == ["mdb-1"]
        assert feeds(data_type="gbfs", client=client)["id"].tolist() == ["mdb-2"]

    def test_uses_default_client(self, client: MobdbClient, catalog) -> None:
        from mobdb.api.base import set_client

        set_client(client)
        catalog.add("feeds", FEED_ROWS)
        assert len(feeds()) == 2


class TestGetFeed:
    def test_returns_record(self, client: MobdbClient, catalog) -> None:
        catalog.add("feeds/mdb-1", {"id": "mdb-1", "provider": "BART"})
        assert get_feed("mdb-1", client=client) == {"id": "mdb-1", "provider": "BART"}

    @pytest.mark.parametrize("bad", ["", None, 53, ["mdb-1"]])
    def test_invalid_id(self, client: MobdbClient, bad: object) -> None:
        with pytest.raises(ValidationError, match="feed_id"):
            get_feed(bad, client=client)  # type: ignore[arg-type]

    def test_not_found(self, client: MobdbClient, catalog) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            get_feed("mdb-999", client=client)
        assert exc_info.value.status_code == 404


class TestFeedUrl:
    @pytest.mark.parametrize(
        "record, expected",
        [
            ({"source_info": {"producer_url": "https://a/gtfs.zip"}, "url": "https://d"}, "https://a/gtfs.zip"),
            ({"source_info": {}, "urls": {"direct_download": "https://b"}}, "https://b"),
            ({"direct_download_url": "https://c"}, "https://c"),
            ({"url": "https://d"}, "https://d"),
        ],
    )
    def test_fallback_chain(self, client: MobdbClient, catalog, record: dict, expected: str) -> None:
        catalog.add("feeds/mdb-1", {"id": "mdb-1", **record})
        assert feed_url("mdb-1", client=client) == expected

    def test_missing_url_warns(self, client: MobdbClient, catalog, capsys: pytest.CaptureFixture[str]) -> None:
        catalog.add("feeds/mdb-1", {"id": "mdb-1"})
        assert feed_url("mdb-1", client=client) is None
        assert "No download URL found for feed 'mdb-1'" in capsys.readouterr().err


class TestMetadata:
    def test_returns_body(self, client: MobdbClient, catalog) -> None:
        catalog.add("metadata", {"version": "1.0.0", "commit_hash": "abc"})
        assert metadata(client=client)["version"] == "1.0.0"
