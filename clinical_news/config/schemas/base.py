"""Base enums for configuration schemas."""

from enum import Enum


class SourceMethod(str, Enum):
    """Retrieval method, which selects the adapter for a source."""

    RSS_FEED = "rss_feed"
    OPENFDA_EVENTS = "openfda_events"
    PUBMED = "pubmed"
