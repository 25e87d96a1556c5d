"""Tests for the Supabase change feed client.

Uses the `responses` library to mock HTTP requests.
"""

import asyncio
import json
from datetime import datetime, timezone
from urllib.parse import parse_qs, urlparse

import pytest
import responses
import requests

from src.core.config import SupabaseConfig
from src.shell.supabase_feed_client import SupabaseFeedClient


REST_URL = "https://ref.supabase.co/rest/v1/trash_locations"
START = "2024-03-14T18:00:00+00:00"


@pytest.fixture
def config():
    """Supabase settings with no poll delay."""
    return SupabaseConfig(
        url="https://ref.supabase.co/",
        anon_key="anon-key",
        poll_interval_seconds=0,
        page_size=100,
    )


def row(row_id: str, created_at: str) -> dict:
    """Create a trash_locations row."""
    return {
        "id": row_id,
        "latitude": 37.7749,
        "longitude": -122.4194,
        "created_at": created_at,
        "status": "active",
    }


def query_of(call) -> dict:
    """Parse the query string of a recorded call."""
    return parse_qs(urlparse(call.request.url).query)


def table_server(rows: list[dict]):
    """Answer change feed queries from an in-memory table."""
    def callback(request):
        query = parse_qs(urlparse(request.url).query)
        since = query["created_at"][0].removeprefix("gte.")
        excluded = set()
        if "id" in query:
            excluded = set(query["id"][0].removeprefix("not.in.(").removesuffix(")").split(","))
        limit = int(query["limit"][0])

        page = sorted(
            (r for r in rows if r["created_at"] >= since and r["id"] not in excluded),
            key=lambda r: (r["created_at"], r["id"]),
        )
        return 200, {}, json.dumps(page[:limit])

    return callback


async def collect(client: SupabaseFeedClient, max_polls: int) -> list[dict]:
    """Drain a bounded stream into a list."""
    return [r async for r in client.stream(max_polls=max_polls)]


class TestSupabaseFeedClientInit:
    """Tests for SupabaseFeedClient initialization."""

    def test_rest_url(self, config):
        """Trailing slashes in the project URL are handled."""
        assert SupabaseFeedClient(config).rest_url == REST_URL

    def test_since_datetime_becomes_cursor(self, config):
        """A datetime start point is stored as ISO-8601."""
        since = datetime(2024, 3, 14, 18, 0, tzinfo=timezone.utc)
        assert SupabaseFeedClient(config, since=since).cursor == START

    def test_defaults_to_now(self, config):
        """Without a start point only rows created from now on are streamed."""
        before = datetime.now(timezone.utc)
        client = SupabaseFeedClient(config)
        assert datetime.fromisoformat(client.cursor) >= before


class TestSupabaseFeedClientFetchRows:
    """Tests for SupabaseFeedClient.fetch_rows()."""

    @responses.activate
    def test_sends_cursor_query_and_auth(self, config):
        """Rows are requested in creation order from the cursor."""
        responses.add(responses.GET, REST_URL, json=[], status=200)

        SupabaseFeedClient(config, since=START).fetch_rows(START, 50)

        call = responses.calls[0]
        query = query_of(call)
        assert query["created_at"] == [f"gte.{START}"]
        assert query["order"] == ["created_at.asc,id.asc"]
        assert query["limit"] == ["50"]
        assert call.request.headers["apikey"] == "anon-key"
        assert call.request.headers["Authorization"] == "Bearer anon-key"

    @responses.activate
    def test_http_error_raises(self, config):
        """HTTP errors propagate to the caller."""
        responses.add(responses.GET, REST_URL, json={"message": "bad"}, status=401)

        with pytest.raises(requests.HTTPError):
            SupabaseFeedClient(config, since=START).fetch_rows(START, 10)

    @responses.activate
    def test_unexpected_body_returns_empty(self, config):
        """Non-list bodies are ignored."""
        responses.add(responses.GET, REST_URL, json={"rows": []}, status=200)
        assert SupabaseFeedClient(config, since=START).fetch_rows(START, 10) == []


class TestSupabaseFeedClientPollOnce:
    """Tests for SupabaseFeedClient.poll_once()."""

    @responses.activate
    def test_advances_cursor(self, config):
        """The cursor moves to the newest row seen."""
        responses.add(responses.GET, REST_URL, json=[
            row("1", "2024-03-14T18:00:01+00:00"),
            row("2", "2024-03-14T18:00:02+00:00"),
        ], status=200)
        client = SupabaseFeedClient(config, since=START)

        rows = client.poll_once()

        assert [r["id"] for r in rows] == ["1", "2"]
        assert client.cursor == "2024-03-14T18:00:02+00:00"

    @responses.activate
    def test_rows_at_cursor_are_not_repeated(self, config):
        """The inclusive bound does not replay rows already delivered."""
        ts = "2024-03-14T18:00:02+00:00"
        responses.add(responses.GET, REST_URL, json=[row("1", ts)], status=200)
        responses.add(responses.GET, REST_URL, json=[row("1", ts), row("2", ts)], status=200)
        client = SupabaseFeedClient(config, since=START)

        first = client.poll_once()
        second = client.poll_once()

        assert [r["id"] for r in first] == ["1"]
        assert [r["id"] for r in second] == ["2"]
        assert query_of(responses.calls[1])["created_at"] == [f"gte.{ts}"]

    @responses.activate
    def test_burst_larger_than_page_at_one_timestamp(self, config):
        """More rows than page_size sharing a created_at are all delivered."""
        burst = "2024-03-14T18:00:01+00:00"
        later = "2024-03-14T18:00:05+00:00"
        table = [row("0", burst), row("1", burst), row("2", burst), row("9", later)]
        responses.add_callback(responses.GET, REST_URL, callback=table_server(table))
        config.page_size = 2
        client = SupabaseFeedClient(config, since=START)

        seen = []
        for _ in range(4):
            seen.extend(r["id"] for r in client.poll_once())

        assert seen == ["0", "1", "2", "9"]
        assert client.cursor == later
        assert query_of(responses.calls[1])["id"] == ["not.in.(0,1)"]

    @responses.activate
    def test_skips_non_object_rows(self, config):
        """Rows that are not JSON objects are dropped."""
        responses.add(responses.GET, REST_URL, json=[
            "junk",
            None,
            row("1", "2024-03-14T18:00:01+00:00"),
        ], status=200)

        rows = SupabaseFeedClient(config, since=START).poll_once()

        assert [r["id"] for r in rows] == ["1"]


class TestSupabaseFeedClientStream:
    """Tests for SupabaseFeedClient.stream()."""

    @responses.activate
    def test_yields_rows_in_order(self, config):
        """Rows from successive polls are yielded in creation order."""
        responses.add(responses.GET, REST_URL, json=[
            row("1", "2024-03-14T18:00:01+00:00"),
            row("2", "2024-03-14T18:00:02+00:00"),
        ], status=200)
        responses.add(responses.GET, REST_URL, json=[
            row("3", "2024-03-14T18:00:03+00:00"),
        ], status=200)

        rows = asyncio.run(collect(SupabaseFeedClient(config, since=START), max_polls=2))

        assert [r["id"] for r in rows] == ["1", "2", "3"]

    @responses.activate
    def test_failed_poll_is_logged_and_retried(self, config):
        """A failed poll does not end the stream."""
        responses.add(
            responses.GET,
            REST_URL,
            body=requests.exceptions.ConnectionError("Connection refused"),
        )
        responses.add(responses.GET, REST_URL, json=[
            row("1", "2024-03-14T18:00:01+00:00"),
        ], status=200)

        rows = asyncio.run(collect(SupabaseFeedClient(config, since=START), max_polls=2))

        assert [r["id"] for r in rows] == ["1"]
        assert len(responses.calls) == 2

    @responses.activate
    def test_close_stops_stream(self, config):
        """A closed client makes no further polls."""
        client = SupabaseFeedClient(config, since=START)
        client.close()

        rows = asyncio.run(collect(client, max_polls=5))

        assert rows == []
        assert len(responses.calls) == 0
