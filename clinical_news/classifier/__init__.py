"""Topic classification of news items."""

from clinical_news.classifier.classifier import (
    Classification,
    Classifier,
    classify,
    fallback_category,
)
from clinical_news.classifier.constants import MAX_TAGS


__all__ = [
    "MAX_TAGS",
    "Classification",
    "Classifier",
    "classify",
    "fallback_category",
]
