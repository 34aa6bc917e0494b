"""Results, errors and retry policy of the HTTP fetch layer."""

import json
import random
from enum import Enum
from typing import Annotated, Any

import httpx
from pydantic import BaseModel, ConfigDict, Field


class FetchErrorClass(str, Enum):
    """Why a request produced no usable response."""

    NETWORK_TIMEOUT = "NETWORK_TIMEOUT"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    RESPONSE_SIZE_EXCEEDED = "RESPONSE_SIZE_EXCEEDED"
    HTTP_4XX = "HTTP_4XX"
    HTTP_5XX = "HTTP_5XX"
    RATE_LIMITED = "RATE_LIMITED"
    UNKNOWN = "UNKNOWN"


# Failures that may succeed on a second attempt
TRANSIENT_ERROR_CLASSES: frozenset[FetchErrorClass] = frozenset(
    {
        FetchErrorClass.NETWORK_TIMEOUT,
        FetchErrorClass.CONNECTION_ERROR,
        FetchErrorClass.HTTP_5XX,
        FetchErrorClass.RATE_LIMITED,
    }
)


class FetchError(BaseModel):
    """Classified failure of one request."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    error_class: FetchErrorClass
    message: Annotated[str, Field(min_length=1)]
    status_code: int | None = None
    retry_after: float | None = Field(
        default=None, description="Seconds the upstream asked us to wait (429)"
    )

    @property
    def retryable(self) -> bool:
        """Whether the failure is transient."""
        return self.error_class in TRANSIENT_ERROR_CLASSES


class FetchResult(BaseModel):
    """Outcome of HttpFetcher.fetch.

    status_code is 0 when no HTTP response arrived (timeout, refused
    connection, oversize body).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    status_code: int = Field(ge=0, le=599)
    final_url: Annotated[str, Field(min_length=1)]
    headers: dict[str, str] = Field(default_factory=dict)
    body_bytes: bytes = b""
    error: FetchError | None = None

    @property
    def is_success(self) -> bool:
        """A 2xx response without a transport error."""
        return self.error is None and httpx.codes.is_success(self.status_code)

    @property
    def not_found(self) -> bool:
        """The upstream answered 404."""
        return self.status_code == httpx.codes.NOT_FOUND

    @property
    def body_size(self) -> int:
        """Body length in bytes."""
        return len(self.body_bytes)

    @property
    def text(self) -> str:
        """Body decoded as UTF-8, undecodable bytes replaced."""
        return self.body_bytes.decode("utf-8", errors="replace")

    def json_body(self) -> Any:
        """Decode the body as JSON.

        Raises:
            ValueError: If the body is not valid JSON.
        """
        return json.loads(self.body_bytes)


class RetryPolicy(BaseModel):
    """How many times, and how patiently, transient failures are retried.

    The default makes a single attempt: every source has a fixed time
    budget, and a retry would eat into the fallback strategy's share.
    Backoff for attempt n is backoff_seconds * multiplier**n, capped at
    max_backoff_seconds, plus up to jitter of that delay.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_retries: Annotated[int, Field(ge=0, le=10)] = 0
    backoff_seconds: Annotated[float, Field(ge=0.0, le=60.0)] = 0.25
    max_backoff_seconds: Annotated[float, Field(ge=0.0, le=300.0)] = 2.0
    multiplier: Annotated[float, Field(ge=1.0, le=5.0)] = 2.0
    jitter: Annotated[float, Field(ge=0.0, le=1.0)] = 0.1
    max_retry_after_seconds: Annotated[float, Field(ge=0.0, le=60.0)] = 10.0

    def allows_retry(self, error: FetchError, attempt: int) -> bool:
        """Whether attempt (0-indexed) may be followed by another one."""
        return attempt < self.max_retries and error.retryable

    def backoff(self, attempt: int) -> float:
        """Seconds to wait after a failed attempt (0-indexed)."""
        delay = min(
            self.backoff_seconds * self.multiplier**attempt,
            self.max_backoff_seconds,
        )
        return delay + delay * self.jitter * random.random()  # noqa: S311

    def wait_for(self, error: FetchError, attempt: int) -> float:
        """Seconds to wait before retrying after error.

        A Retry-After hint from a 429 wins over the computed backoff, up to
        max_retry_after_seconds.
        """
        if error.error_class == FetchErrorClass.RATE_LIMITED and error.retry_after:
            return min(error.retry_after, self.max_retry_after_seconds)
        return self.backoff(attempt)


class ResponseSizeExceededError(Exception):
    """Raised while streaming a body that outgrows the configured limit."""
