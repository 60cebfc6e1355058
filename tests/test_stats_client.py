"""Tests for the stats service client, using httpx.MockTransport."""
import json
import re
from datetime import datetime, timezone

import httpx

from event_explorer.clients.stats_client import NullPopularityProvider, StatsClient, event_uri

START = datetime(2026, 1, 1, tzinfo=timezone.utc)
END = datetime(2026, 12, 31, 23, 59, 59, tzinfo=timezone.utc)


def _client(handler, unique=False):
    return StatsClient(
        base_url="http://stats.test",
        app_name="ewm-main",
        unique=unique,
        transport=httpx.MockTransport(handler),
    )


class TestRecordView:
    def test_posts_hit(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(201)

        _client(handler).record_view("/events/7", "10.0.0.1")

        assert len(seen) == 1
        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/hit"
        body = json.loads(request.content)
        assert body["app"] == "ewm-main"
        assert body["uri"] == "/events/7"
        assert body["ip"] == "10.0.0.1"
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", body["timestamp"])

    def test_failures_are_swallowed(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        _client(handler).record_view("/events", "10.0.0.1")
        _client(lambda request: httpx.Response(503)).record_view("/events", "10.0.0.1")


class TestViewCounts:
    def test_parses_hits_per_event(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[
                {"app": "ewm-main", "uri": "/events/1", "hits": 5},
                {"app": "ewm-main", "uri": "/events/3", "hits": 2},
                {"app": "ewm-main", "uri": "/events", "hits": 99},
            ])

        counts = _client(handler).get_view_counts([1, 2, 3], START, END)

        assert counts == {1: 5, 2: 0, 3: 2}
        params = seen[0].url.params
        assert seen[0].url.path == "/stats"
        assert params.get_list("uris") == [event_uri(1), event_uri(2), event_uri(3)]
        assert params["start"] == "2026-01-01 00:00:00"
        assert params["end"] == "2026-12-31 23:59:59"
        assert params["unique"] == "false"

    def test_unique_flag(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[])

        _client(handler, unique=True).get_view_counts([1], START, END)
        assert seen[0].url.params["unique"] == "true"

    def test_no_ids_no_call(self):
        def handler(request):
            raise AssertionError("stats service must not be called")

        assert _client(handler).get_view_counts([], START, END) == {}

    def test_server_error_yields_zeros(self):
        client = _client(lambda request: httpx.Response(500))
        assert client.get_view_counts([1, 2], START, END) == {1: 0, 2: 0}

    def test_transport_error_yields_zeros(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        assert _client(handler).get_view_counts([4], START, END) == {4: 0}

    def test_malformed_payload_yields_zeros(self):
        client = _client(lambda request: httpx.Response(200, content=b"not json"))
        assert client.get_view_counts([1], START, END) == {1: 0}
        client = _client(lambda request: httpx.Response(200, json=[{"uri": "/events/1", "hits": "many"}]))
        assert client.get_view_counts([1], START, END) == {1: 0}


def test_null_provider():
    provider = NullPopularityProvider()
    provider.record_view("/events/1", "127.0.0.1")
    assert provider.get_view_counts([1, 2], START, END) == {1: 0, 2: 0}
