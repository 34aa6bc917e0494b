"""Keyword group matching for relevance scoring.

Keyword lists are compiled once into regex patterns and reused for every
item scored.
"""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass


# Keywords this short are prone to substring false positives
# (e.g. "ms" in "terms", "als" in "trials"), so they get \b guards.
_SHORT_KEYWORD_THRESHOLD = 4

_WORD_CHARS_ONLY = re.compile(r"^\w+$")


@dataclass(frozen=True)
class KeywordHit:
    """Result of matching a keyword group.

    Attributes:
        keyword: The keyword that matched.
        in_title: Whether it matched in the title.
    """

    keyword: str
    in_title: bool


def _compile_keyword_pattern(keyword: str) -> re.Pattern[str]:
    """Compile a keyword into a case-insensitive pattern.

    Short all-word-character keywords get word-boundary anchors on both
    sides. Phrases ending in a word character get a trailing boundary so
    "phase i" does not match "phase iii". Everything else is a plain
    substring match.
    """
    escaped = re.escape(keyword)
    if len(keyword) <= _SHORT_KEYWORD_THRESHOLD and _WORD_CHARS_ONLY.match(keyword):
        return re.compile(rf"\b{escaped}\b", re.IGNORECASE)
    if " " in keyword and keyword[-1].isalnum():
        return re.compile(rf"{escaped}\b", re.IGNORECASE)
    return re.compile(escaped, re.IGNORECASE)


class KeywordGroup:
    """A named list of keywords matched as one unit."""

    def __init__(self, name: str, keywords: Iterable[str]) -> None:
        self.name = name
        self.keywords = tuple(keywords)
        self._patterns = [
            (kw, _compile_keyword_pattern(kw)) for kw in self.keywords if kw.strip()
        ]

    def __len__(self) -> int:
        return len(self._patterns)

    def search(self, text: str) -> str | None:
        """Return the first keyword found in text, in list order."""
        for keyword, pattern in self._patterns:
            if pattern.search(text):
                return keyword
        return None

    def match(self, title: str, all_text: str) -> KeywordHit | None:
        """Match the group, preferring a hit in the title.

        A group counts once: any keyword in the title makes it a title hit,
        otherwise any keyword in the full text makes it a body hit.
        """
        keyword = self.search(title)
        if keyword is not None:
            return KeywordHit(keyword=keyword, in_title=True)
        keyword = self.search(all_text)
        if keyword is not None:
            return KeywordHit(keyword=keyword, in_title=False)
        return None


_EMPTY_GROUP = KeywordGroup("", ())


class KeywordMatcher:
    """Pre-compiled keyword groups looked up by key."""

    def __init__(self, tables: Mapping[str, Iterable[str]]) -> None:
        """Initialize the matcher.

        Args:
            tables: Keyword list per key.
        """
        self._groups = {key: KeywordGroup(key, kws) for key, kws in tables.items()}

    @property
    def keys(self) -> list[str]:
        """Keys with a keyword list."""
        return list(self._groups)

    def group(self, key: str) -> KeywordGroup:
        """Get the group for a key; unknown keys match nothing."""
        return self._groups.get(key, _EMPTY_GROUP)
