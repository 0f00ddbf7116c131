"""Unit tests for the usage endpoint client (network replaced by fakes)."""

import http.client
import json
import urllib.error
from datetime import datetime, timezone

import pytest

from claude_status import usage_api
from claude_status.errors import AuthError, NetworkError, ParseError
from claude_status.usage_api import fetch_usage, parse_response, parse_timestamp

SAMPLE = {
    "five_hour": {"utilization": 42.5, "resets_at": "2025-06-01T15:00:00Z"},
    "seven_day": {"utilization": 13.0, "resets_at": "2025-06-05T09:30:00.123456+00:00"},
    "seven_day_opus": None,
}


class FakeResponse:
    def __init__(self, body: bytes, status: int = 200) -> None:
        self._body = body
        self.status = status

    def read(self) -> bytes:
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def urlopen(monkeypatch):
    """Replace urlopen; set .result to a FakeResponse or an exception."""
    class Stub:
        result = FakeResponse(json.dumps(SAMPLE).encode())
        requests = []

        def __call__(self, req, timeout=None, context=None):
            self.requests.append(req)
            if isinstance(self.result, Exception):
                raise self.result
            return self.result

    stub = Stub()
    stub.requests = []
    monkeypatch.setattr(usage_api.urllib.request, "urlopen", stub)
    return stub


def _http_error(code):
    return urllib.error.HTTPError(usage_api.USAGE_API_URL, code, "error", {}, None)


class TestFetchUsage:
    def test_success(self, urlopen):
        snap = fetch_usage("tok")
        assert snap.five_hour_pct == 42.5
        assert snap.seven_day_pct == 13.0
        assert snap.five_hour_resets_at == datetime(2025, 6, 1, 15, 0, tzinfo=timezone.utc)
        assert snap.fetched_at.tzinfo is not None

    def test_request_headers(self, urlopen):
        fetch_usage("tok")
        req = urlopen.requests[0]
        assert req.full_url == "https://api.anthropic.com/api/oauth/usage"
        assert req.get_method() == "GET"
        assert req.get_header("Authorization") == "Bearer tok"
        assert req.get_header("Anthropic-beta") == "oauth-2025-04-20"
        assert req.get_header("User-agent").startswith("claude-status/")

    def test_401_is_auth_error(self, urlopen):
        urlopen.result = _http_error(401)
        with pytest.raises(AuthError):
            fetch_usage("tok")

    def test_other_status_is_network_error(self, urlopen):
        urlopen.result = _http_error(503)
        with pytest.raises(NetworkError) as exc_info:
            fetch_usage("tok")
        assert "503" in str(exc_info.value)

    def test_transport_failure(self, urlopen):
        urlopen.result = urllib.error.URLError("Name or service not known")
        with pytest.raises(NetworkError) as exc_info:
            fetch_usage("tok")
        assert str(exc_info.value) == "Connection failed"

    def test_timeout(self, urlopen):
        urlopen.result = TimeoutError("timed out")
        with pytest.raises(NetworkError):
            fetch_usage("tok")

    @pytest.mark.parametrize("error", [
        http.client.IncompleteRead(b"{"),
        http.client.BadStatusLine("garbage"),
        http.client.LineTooLong("header line"),
        http.client.RemoteDisconnected("closed"),
    ])
    def test_broken_response_is_network_error(self, urlopen, error):
        urlopen.result = error
        with pytest.raises(NetworkError) as exc_info:
            fetch_usage("tok")
        assert str(exc_info.value) == "Connection failed"

    def test_body_cut_off_while_reading(self, urlopen):
        class TruncatedResponse(FakeResponse):
            def read(self):
                raise http.client.IncompleteRead(b"{\"five_hour\"", 120)

        urlopen.result = TruncatedResponse(b"")
        with pytest.raises(NetworkError):
            fetch_usage("tok")

    def test_non_2xx_without_exception(self, urlopen):
        urlopen.result = FakeResponse(b"", status=304)
        with pytest.raises(NetworkError):
            fetch_usage("tok")

    def test_unparsable_body(self, urlopen):
        urlopen.result = FakeResponse(b"<html>oops</html>")
        with pytest.raises(ParseError):
            fetch_usage("tok")

    def test_non_object_body(self, urlopen):
        urlopen.result = FakeResponse(b"[1, 2]")
        with pytest.raises(ParseError):
            fetch_usage("tok")


class TestParseResponse:
    def test_missing_window_left_unset(self):
        snap = parse_response({"five_hour": {"utilization": 10, "resets_at": None}})
        assert snap.five_hour_pct == 10.0
        assert snap.five_hour_resets_at is None
        assert snap.seven_day is None
        assert snap.seven_day_pct is None

    def test_empty_object(self):
        snap = parse_response({})
        assert snap.five_hour is None
        assert snap.seven_day is None

    def test_clamped(self):
        snap = parse_response({
            "five_hour": {"utilization": 140.2},
            "seven_day": {"utilization": -3},
        })
        assert snap.five_hour_pct == 100.0
        assert snap.seven_day_pct == 0.0

    def test_missing_utilization_is_zero(self):
        snap = parse_response({"five_hour": {"resets_at": "2025-06-01T15:00:00Z"}})
        assert snap.five_hour_pct == 0.0

    def test_non_numeric_utilization(self):
        with pytest.raises(ParseError):
            parse_response({"five_hour": {"utilization": "lots"}})

    def test_non_object_window_ignored(self):
        snap = parse_response({"five_hour": "n/a", "seven_day": {"utilization": 5}})
        assert snap.five_hour is None
        assert snap.seven_day_pct == 5.0


class TestParseTimestamp:
    def test_zulu(self):
        assert parse_timestamp("2025-06-01T15:00:00Z") == datetime(2025, 6, 1, 15, tzinfo=timezone.utc)

    def test_naive_assumed_utc(self):
        assert parse_timestamp("2025-06-01T15:00:00").tzinfo is timezone.utc

    def test_garbage(self):
        assert parse_timestamp("tomorrow") is None
        assert parse_timestamp(None) is None
        assert parse_timestamp(1234) is None
