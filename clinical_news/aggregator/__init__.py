"""Concurrent aggregation, deduplication, filtering and pagination."""

from clinical_news.aggregator.aggregator import NewsAggregator
from clinical_news.aggregator.dedupe import dedup_key, deduplicate
from clinical_news.aggregator.filters import (
    apply_filter,
    matches_filter,
    paginate,
    sort_by_published_desc,
)
from clinical_news.aggregator.metrics import AggregationMetrics
from clinical_news.aggregator.models import AggregationResult, SourceRunResult


__all__ = [
    "AggregationMetrics",
    "AggregationResult",
    "NewsAggregator",
    "SourceRunResult",
    "apply_filter",
    "dedup_key",
    "deduplicate",
    "matches_filter",
    "paginate",
    "sort_by_published_desc",
]
