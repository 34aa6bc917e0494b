"""Content-based classification of news items into categories and tags."""

import re
from collections.abc import Iterable
from dataclasses import dataclass

from clinical_news.classifier.constants import (
    CATEGORY_PATTERNS,
    DEFAULT_FALLBACK_CATEGORY,
    FALLBACK_CATEGORY_BY_SOURCE,
    MAX_TAGS,
    TAG_VOCABULARY,
)
from clinical_news.models import NewsCategory, NewsItem, NewsSource


@dataclass(frozen=True)
class Classification:
    """Categories and tags assigned to one item.

    Attributes:
        categories: Ordered categories; never empty.
        tags: Vocabulary tags in vocabulary order, capped at MAX_TAGS.
    """

    categories: tuple[NewsCategory, ...]
    tags: tuple[str, ...]

    def to_dict(self) -> dict[str, list[str]]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "categories": [c.value for c in self.categories],
            "tags": list(self.tags),
        }


def _compile_alternatives(regexes: tuple[str, ...]) -> re.Pattern[str]:
    return re.compile("|".join(f"(?:{p})" for p in regexes), re.IGNORECASE)


class Classifier:
    """Assigns categories and tags from item text plus source identity.

    Patterns are compiled once. classify() is pure, so a single instance
    can be shared across threads.
    """

    def __init__(
        self,
        category_patterns: dict[NewsCategory, tuple[str, ...]] | None = None,
        tag_vocabulary: tuple[tuple[str, str], ...] | None = None,
        max_tags: int = MAX_TAGS,
    ) -> None:
        """Initialize the classifier.

        Args:
            category_patterns: Category to regex table (defaults to built-in).
            tag_vocabulary: Ordered (tag, regex) vocabulary (defaults to built-in).
            max_tags: Maximum tags per item.
        """
        if category_patterns is None:
            category_patterns = CATEGORY_PATTERNS
        vocabulary = tag_vocabulary if tag_vocabulary is not None else TAG_VOCABULARY

        self._category_patterns = [
            (category, _compile_alternatives(regexes))
            for category, regexes in category_patterns.items()
        ]
        self._tag_patterns = [
            (tag, re.compile(pattern, re.IGNORECASE)) for tag, pattern in vocabulary
        ]
        self._max_tags = max_tags

    @property
    def vocabulary(self) -> list[str]:
        """Tags in vocabulary order."""
        return [tag for tag, _ in self._tag_patterns]

    def classify(
        self,
        item: NewsItem,
        default_categories: Iterable[NewsCategory] = (),
    ) -> Classification:
        """Classify an item.

        Source defaults come first, pattern categories are added on top.
        When both are empty exactly one fallback is chosen by source.

        Args:
            item: Item to classify.
            default_categories: Categories seeded by the item's feed.

        Returns:
            Classification with at least one category.
        """
        text = item.all_text
        categories: list[NewsCategory] = []
        for category in default_categories:
            if category not in categories:
                categories.append(category)

        for category, pattern in self._category_patterns:
            if category not in categories and pattern.search(text):
                categories.append(category)

        if not categories:
            categories.append(fallback_category(item.source))

        return Classification(
            categories=tuple(categories), tags=self.extract_tags(text)
        )

    def extract_tags(self, text: str) -> tuple[str, ...]:
        """Extract vocabulary tags found in text, in vocabulary order."""
        tags: list[str] = []
        for tag, pattern in self._tag_patterns:
            if len(tags) >= self._max_tags:
                break
            if pattern.search(text):
                tags.append(tag)
        return tuple(tags)

    def annotate(
        self,
        item: NewsItem,
        default_categories: Iterable[NewsCategory] = (),
    ) -> NewsItem:
        """Return a copy of the item carrying its categories and tags."""
        result = self.classify(item, default_categories)
        return item.model_copy(
            update={"categories": result.categories, "tags": result.tags}
        )


def fallback_category(source: NewsSource) -> NewsCategory:
    """The single category used when no default or pattern applies."""
    return FALLBACK_CATEGORY_BY_SOURCE.get(source, DEFAULT_FALLBACK_CATEGORY)


_default_classifier = Classifier()


def classify(
    item: NewsItem,
    default_categories: Iterable[NewsCategory] = (),
) -> Classification:
    """Classify an item with the built-in pattern table and vocabulary."""
    return _default_classifier.classify(item, default_categories)
