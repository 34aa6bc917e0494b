"""Unit tests for HttpFetcher over httpx.MockTransport."""

from datetime import UTC, datetime

import httpx

from clinical_news.fetch.client import HttpFetcher, parse_retry_after
from clinical_news.fetch.config import FetchConfig
from clinical_news.fetch.models import FetchErrorClass, RetryPolicy


URL = "https://example.com/feed.xml"


def make_fetcher(
    handler: httpx.MockTransport | None = None,
    config: FetchConfig | None = None,
) -> HttpFetcher:
    """Create a fetcher over a mock transport."""
    return HttpFetcher(config or FetchConfig(), request_id="test", transport=handler)


class TestHttpFetcherSuccess:
    """Tests for successful fetches."""

    def test_returns_body_and_status(self) -> None:
        """A 200 response yields the body and no error."""
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, content=b"<rss/>")
        )

        result = make_fetcher(transport).fetch("src", URL)

        assert result.is_success
        assert result.status_code == 200
        assert result.body_bytes == b"<rss/>"
        assert result.error is None

    def test_sends_params_and_headers(self) -> None:
        """Query params and extra headers reach the upstream."""
        seen: dict[str, httpx.Request] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json={})

        config = FetchConfig(user_agent="ua-test")
        make_fetcher(httpx.MockTransport(handler), config).fetch(
            "src", URL, params={"q": "trial"}, extra_headers={"X-Trace": "1"}
        )

        request = seen["request"]
        assert request.url.params["q"] == "trial"
        assert request.headers["X-Trace"] == "1"
        assert request.headers["User-Agent"] == "ua-test"


class TestHttpFetcherErrors:
    """Tests for error classification; fetch() never raises."""

    def test_404_is_client_error(self) -> None:
        """4xx responses are classified HTTP_4XX."""
        transport = httpx.MockTransport(lambda request: httpx.Response(404))

        result = make_fetcher(transport).fetch("src", URL)

        assert not result.is_success
        assert result.error is not None
        assert result.error.error_class == FetchErrorClass.HTTP_4XX
        assert result.error.status_code == 404

    def test_500_is_server_error(self) -> None:
        """5xx responses are classified HTTP_5XX."""
        transport = httpx.MockTransport(lambda request: httpx.Response(503))

        result = make_fetcher(transport).fetch("src", URL)

        assert result.error is not None
        assert result.error.error_class == FetchErrorClass.HTTP_5XX

    def test_429_carries_retry_after(self) -> None:
        """429 responses are RATE_LIMITED with Retry-After parsed."""
        transport = httpx.MockTransport(
            lambda request: httpx.Response(429, headers={"Retry-After": "7"})
        )

        result = make_fetcher(transport).fetch("src", URL)

        assert result.error is not None
        assert result.error.error_class == FetchErrorClass.RATE_LIMITED
        assert result.error.retry_after == 7.0

    def test_timeout_is_network_timeout(self) -> None:
        """A transport timeout is classified NETWORK_TIMEOUT."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        result = make_fetcher(httpx.MockTransport(handler)).fetch("src", URL)

        assert result.status_code == 0
        assert result.error is not None
        assert result.error.error_class == FetchErrorClass.NETWORK_TIMEOUT

    def test_connect_error(self) -> None:
        """A refused connection is classified CONNECTION_ERROR."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        result = make_fetcher(httpx.MockTransport(handler)).fetch("src", URL)

        assert result.error is not None
        assert result.error.error_class == FetchErrorClass.CONNECTION_ERROR

    def test_body_over_limit(self) -> None:
        """Bodies larger than the configured limit are rejected."""
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, content=b"x" * 4096)
        )
        config = FetchConfig(max_response_size_bytes=1024)

        result = make_fetcher(transport, config).fetch("src", URL)

        assert result.error is not None
        assert result.error.error_class == FetchErrorClass.RESPONSE_SIZE_EXCEEDED
        assert result.body_bytes == b""


class TestHttpFetcherRetry:
    """Tests for retry behaviour."""

    def test_no_retry_by_default(self) -> None:
        """The default policy makes exactly one attempt."""
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(500)

        make_fetcher(httpx.MockTransport(handler)).fetch("src", URL)

        assert len(calls) == 1

    def test_retries_transient_failure(self) -> None:
        """A 5xx followed by a 200 succeeds when retries are enabled."""
        responses = [httpx.Response(502), httpx.Response(200, content=b"ok")]

        def handler(request: httpx.Request) -> httpx.Response:
            return responses.pop(0)

        config = FetchConfig(
            retry_policy=RetryPolicy(max_retries=1, backoff_seconds=0.0)
        )

        result = make_fetcher(httpx.MockTransport(handler), config).fetch("src", URL)

        assert result.is_success
        assert result.body_bytes == b"ok"
        assert responses == []

    def test_rate_limit_retry_honours_hint(self) -> None:
        """A 429 with Retry-After: 0 is retried immediately."""
        responses = [
            httpx.Response(429, headers={"Retry-After": "0"}),
            httpx.Response(200, content=b"ok"),
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            return responses.pop(0)

        config = FetchConfig(
            retry_policy=RetryPolicy(max_retries=2, backoff_seconds=0.0)
        )

        result = make_fetcher(httpx.MockTransport(handler), config).fetch("src", URL)

        assert result.is_success
        assert responses == []

    def test_client_error_not_retried(self) -> None:
        """A 404 is final even when retries are enabled."""
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(404)

        config = FetchConfig(retry_policy=RetryPolicy(max_retries=3))

        result = make_fetcher(httpx.MockTransport(handler), config).fetch("src", URL)

        assert result.not_found
        assert len(calls) == 1


class TestParseRetryAfter:
    """Tests for Retry-After header parsing."""

    def test_seconds(self) -> None:
        """Delta-seconds are returned as given."""
        assert parse_retry_after(" 30 ") == 30.0

    def test_http_date(self) -> None:
        """An HTTP date is converted to seconds from now."""
        now = datetime(2025, 6, 10, 12, 0, tzinfo=UTC)

        assert parse_retry_after("Tue, 10 Jun 2025 12:01:30 GMT", now=now) == 90.0

    def test_past_date_is_zero(self) -> None:
        """A date in the past means no wait."""
        now = datetime(2025, 6, 10, 12, 0, tzinfo=UTC)

        assert parse_retry_after("Mon, 09 Jun 2025 12:00:00 GMT", now=now) == 0.0

    def test_garbage(self) -> None:
        """Unparseable or empty values yield None."""
        assert parse_retry_after("soon") is None
        assert parse_retry_after("") is None
        assert parse_retry_after(None) is None
