"""Shared helpers for URL, date, text and hashing normalization."""

from clinical_news.utils.dates import normalize_published_at, parse_date
from clinical_news.utils.hashing import compute_item_id
from clinical_news.utils.text import html_to_text, normalize_tag
from clinical_news.utils.url import canonicalize_url, is_http_url


__all__ = [
    "canonicalize_url",
    "compute_item_id",
    "html_to_text",
    "is_http_url",
    "normalize_published_at",
    "normalize_tag",
    "parse_date",
]
