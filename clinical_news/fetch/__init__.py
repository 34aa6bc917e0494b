"""HTTP fetch layer with retries, size limits, and failure isolation."""

from clinical_news.fetch.client import HttpFetcher
from clinical_news.fetch.config import FetchConfig
from clinical_news.fetch.models import (
    FetchError,
    FetchErrorClass,
    FetchResult,
    ResponseSizeExceededError,
    RetryPolicy,
)
from clinical_news.fetch.redact import (
    redact_headers,
    redact_params,
    redact_url,
)


__all__ = [
    "FetchConfig",
    "FetchError",
    "FetchErrorClass",
    "FetchResult",
    "HttpFetcher",
    "ResponseSizeExceededError",
    "RetryPolicy",
    "redact_headers",
    "redact_params",
    "redact_url",
]
