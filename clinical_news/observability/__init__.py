"""Structured logging."""

from clinical_news.observability.logging import (
    configure_logging,
    request_context,
    resolve_level,
)


__all__ = [
    "configure_logging",
    "request_context",
    "resolve_level",
]
