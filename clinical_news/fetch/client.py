"""HTTP GET client shared by the source adapters."""

import time
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from urllib.parse import urlparse

import httpx
import structlog

from clinical_news.fetch.config import FetchConfig
from clinical_news.fetch.constants import STREAM_CHUNK_SIZE
from clinical_news.fetch.models import (
    FetchError,
    FetchErrorClass,
    FetchResult,
    ResponseSizeExceededError,
)
from clinical_news.fetch.redact import redact_headers, redact_params, redact_url


logger = structlog.get_logger()


def parse_retry_after(value: str | None, now: datetime | None = None) -> float | None:
    """Seconds to wait from a Retry-After header (delta-seconds or HTTP date)."""
    if not value or not value.strip():
        return None
    value = value.strip()
    if value.isdigit():
        return float(value)
    try:
        when = parsedate_to_datetime(value)
    except (ValueError, TypeError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    return max(0.0, (when - (now or datetime.now(UTC))).total_seconds())


def classify_response(response: httpx.Response) -> FetchError | None:
    """Map a non-2xx response to a FetchError; None for success."""
    status = response.status_code
    if response.is_success:
        return None
    if status == httpx.codes.TOO_MANY_REQUESTS:
        return FetchError(
            error_class=FetchErrorClass.RATE_LIMITED,
            message="Rate limited by upstream",
            status_code=status,
            retry_after=parse_retry_after(response.headers.get("retry-after")),
        )
    if response.is_client_error:
        error_class = FetchErrorClass.HTTP_4XX
    elif response.is_server_error:
        error_class = FetchErrorClass.HTTP_5XX
    else:
        error_class = FetchErrorClass.UNKNOWN
    return FetchError(
        error_class=error_class,
        message=f"HTTP {status} {response.reason_phrase}".strip(),
        status_code=status,
    )


class HttpFetcher:
    """GET client with per-call timeouts, bounded bodies and optional retries.

    fetch() never raises: transport failures, oversize bodies and non-2xx
    statuses all come back as FetchResult.error, so each adapter can decide
    whether to try its fallback. Query strings and credential headers are
    redacted before they reach the log.
    """

    def __init__(
        self,
        config: FetchConfig,
        request_id: str,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            config: Client-wide fetch settings.
            request_id: Aggregation request this fetcher serves, for logging.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self._config = config
        self._transport = transport
        self._log = logger.bind(component="fetch", request_id=request_id)
        self._base_headers = {
            "User-Agent": config.user_agent,
            "Accept": "*/*",
            "Accept-Encoding": "gzip, deflate",
        }

    def fetch(
        self,
        source_id: str,
        url: str,
        params: dict[str, str] | None = None,
        extra_headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> FetchResult:
        """GET a URL on behalf of a source.

        Args:
            source_id: Source the request is made for.
            url: Target URL.
            params: Query parameters.
            extra_headers: Headers merged over the defaults.
            timeout: Seconds for this call; the config default when None.

        Returns:
            The last attempt's FetchResult.
        """
        headers = {**self._base_headers, **(extra_headers or {})}
        log = self._log.bind(
            source_id=source_id,
            url=redact_url(url),
            params=redact_params(params),
            domain=urlparse(url).netloc,
        )
        started = time.monotonic()

        policy = self._config.retry_policy
        attempt = 0
        while True:
            log.debug("fetch_attempt", attempt=attempt, headers=redact_headers(headers))
            result = self._attempt(
                url, params, headers, timeout or self._config.default_timeout_seconds
            )
            if result.error is None or not policy.allows_retry(result.error, attempt):
                break
            wait = policy.wait_for(result.error, attempt)
            log.info(
                "fetch_retry",
                attempt=attempt,
                error_class=result.error.error_class.value,
                wait_seconds=round(wait, 3),
            )
            time.sleep(wait)
            attempt += 1

        log.info(
            "fetch_complete",
            status_code=result.status_code,
            bytes=result.body_size,
            attempts=attempt + 1,
            duration_ms=round((time.monotonic() - started) * 1000, 2),
            error_class=result.error.error_class.value if result.error else None,
        )
        return result

    def _attempt(
        self,
        url: str,
        params: dict[str, str] | None,
        headers: dict[str, str],
        timeout: float,
    ) -> FetchResult:
        try:
            with (
                httpx.Client(
                    timeout=timeout,
                    follow_redirects=True,
                    transport=self._transport,
                ) as client,
                client.stream("GET", url, params=params, headers=headers) as response,
            ):
                body = self._read_limited(response)
                return FetchResult(
                    status_code=response.status_code,
                    final_url=str(response.url),
                    headers=dict(response.headers),
                    body_bytes=body,
                    error=classify_response(response),
                )
        except ResponseSizeExceededError as e:
            return self._failed(url, FetchErrorClass.RESPONSE_SIZE_EXCEEDED, str(e))
        except httpx.TimeoutException as e:
            return self._failed(
                url, FetchErrorClass.NETWORK_TIMEOUT, f"Request timed out: {e}"
            )
        except httpx.ConnectError as e:
            return self._failed(
                url, FetchErrorClass.CONNECTION_ERROR, f"Connection failed: {e}"
            )
        except Exception as e:  # noqa: BLE001
            # Includes InvalidURL, which is not an HTTPError
            return self._failed(
                url, FetchErrorClass.UNKNOWN, f"{type(e).__name__}: {e}"
            )

    def _read_limited(self, response: httpx.Response) -> bytes:
        """Read the body, refusing anything larger than the configured cap.

        Raises:
            ResponseSizeExceededError: On a declared or streamed size over the cap.
        """
        limit = self._config.max_response_size_bytes
        declared = response.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > limit:
            msg = f"Declared size {declared} bytes exceeds limit of {limit} bytes"
            raise ResponseSizeExceededError(msg)

        chunks: list[bytes] = []
        received = 0
        for chunk in response.iter_bytes(chunk_size=STREAM_CHUNK_SIZE):
            received += len(chunk)
            if received > limit:
                msg = f"Body exceeded limit of {limit} bytes"
                raise ResponseSizeExceededError(msg)
            chunks.append(chunk)
        return b"".join(chunks)

    @staticmethod
    def _failed(url: str, error_class: FetchErrorClass, message: str) -> FetchResult:
        return FetchResult(
            status_code=0,
            final_url=url,
            error=FetchError(error_class=error_class, message=message),
        )
