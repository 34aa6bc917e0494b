"""Deduplication of merged news items."""

from collections.abc import Iterable

from clinical_news.models import NewsItem
from clinical_news.utils.url import canonicalize_url


def dedup_key(item: NewsItem) -> str:
    """Compute the deduplication key for an item.

    The canonical URL identifies an item. When the URL is unusable the
    lowercased title plus publication time stands in for it.
    """
    canonical = canonicalize_url(item.url)
    if canonical:
        return canonical
    published = item.published_at.isoformat() if item.published_at else ""
    return f"{item.title.strip().lower()}|{published}"


def deduplicate(items: Iterable[NewsItem]) -> tuple[list[NewsItem], int]:
    """Remove duplicate items, keeping the first one seen for each key.

    Args:
        items: Items in the fixed source order.

    Returns:
        Tuple of (unique items in input order, number of duplicates dropped).
    """
    seen: set[str] = set()
    unique: list[NewsItem] = []
    dropped = 0
    for item in items:
        key = dedup_key(item)
        if key in seen:
            dropped += 1
            continue
        seen.add(key)
        unique.append(item)
    return unique, dropped
