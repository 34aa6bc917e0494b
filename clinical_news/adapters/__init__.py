"""Source adapters: one per upstream feed or API family."""

from clinical_news.adapters.base import AdapterResult, BaseAdapter, SourceAdapter
from clinical_news.adapters.errors import (
    AdapterError,
    AdapterErrorClass,
    ErrorRecord,
    ParseError,
    SchemaError,
    UpstreamTimeoutError,
)
from clinical_news.adapters.openfda import OpenFdaAdapter
from clinical_news.adapters.pubmed import PubMedAdapter
from clinical_news.adapters.registry import (
    AdapterRegistry,
    UnknownSourceMethodError,
    build_default_registry,
)
from clinical_news.adapters.rss_feed import RssFeedAdapter
from clinical_news.adapters.state_machine import (
    IllegalTransitionError,
    RunState,
    SourceRun,
)


__all__ = [
    "AdapterError",
    "AdapterErrorClass",
    "AdapterRegistry",
    "AdapterResult",
    "BaseAdapter",
    "ErrorRecord",
    "IllegalTransitionError",
    "OpenFdaAdapter",
    "ParseError",
    "PubMedAdapter",
    "RssFeedAdapter",
    "RunState",
    "SchemaError",
    "SourceAdapter",
    "SourceRun",
    "UnknownSourceMethodError",
    "UpstreamTimeoutError",
    "build_default_registry",
]
