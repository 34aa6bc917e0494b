"""HTML to plain text reduction and tag folding."""

import re

from bs4 import BeautifulSoup


_WHITESPACE = re.compile(r"\s+")


def html_to_text(value: str | None) -> str:
    """Reduce an HTML fragment to whitespace-normalized plain text.

    Args:
        value: HTML or plain text. None is treated as empty.

    Returns:
        Plain text with tags removed and runs of whitespace collapsed.
    """
    if not value:
        return ""
    if "<" not in value and "&" not in value:
        return _WHITESPACE.sub(" ", value).strip()

    soup = BeautifulSoup(value, "lxml")
    for tag in soup(["script", "style"]):
        tag.decompose()
    return _WHITESPACE.sub(" ", soup.get_text(" ")).strip()


def normalize_tag(tag: str) -> str:
    """Fold a tag for comparison ("Phase 3" == "PHASE3" == "phase_3")."""
    return "".join(ch for ch in tag.lower() if ch.isalnum())
