"""Filtering, ordering and pagination of classified items."""

import math
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import TypeVar

from clinical_news.models import NewsFilter, NewsItem
from clinical_news.utils.text import normalize_tag


T = TypeVar("T")

# Sort key for items without a publication time, always after dated items
_UNKNOWN_DATE = datetime.min.replace(tzinfo=UTC)


def matches_filter(item: NewsItem, news_filter: NewsFilter) -> bool:
    """Check whether an item satisfies every criterion of a filter.

    Items with an unknown publication time never satisfy a date bound.
    """
    if news_filter.sources and item.source not in news_filter.sources:
        return False

    if news_filter.categories and not set(item.categories) & set(
        news_filter.categories
    ):
        return False

    if news_filter.tags:
        wanted = {normalize_tag(t) for t in news_filter.tags}
        if not wanted & {normalize_tag(t) for t in item.tags}:
            return False

    if news_filter.search_query:
        query = news_filter.search_query.lower()
        haystack = f"{item.title} {item.description}".lower()
        if query not in haystack:
            return False

    if news_filter.start_date or news_filter.end_date:
        if item.published_at is None:
            return False
        if news_filter.start_date and item.published_at < news_filter.start_date:
            return False
        if news_filter.end_date and item.published_at > news_filter.end_date:
            return False

    return True


def apply_filter(
    items: Sequence[NewsItem],
    news_filter: NewsFilter | None,
) -> list[NewsItem]:
    """Keep the items matching a filter, preserving order."""
    if news_filter is None or not news_filter.has_criteria:
        return list(items)
    return [item for item in items if matches_filter(item, news_filter)]


def published_sort_key(item: NewsItem) -> datetime:
    """Sort key placing newer items first under reverse=True."""
    return item.published_at or _UNKNOWN_DATE


def sort_by_published_desc(items: Sequence[NewsItem]) -> list[NewsItem]:
    """Sort newest first; unknown dates last, ties keep insertion order."""
    # sorted() is stable with reverse=True, so equal keys keep input order.
    return sorted(items, key=published_sort_key, reverse=True)


def paginate(items: Sequence[T], page: int, page_size: int) -> list[T]:
    """Return one 1-indexed page of a sequence."""
    start = (page - 1) * page_size
    return list(items[start : start + page_size])


def page_count(total: int, page_size: int) -> int:
    """Number of pages needed to cover total items."""
    return math.ceil(total / page_size) if total else 0
