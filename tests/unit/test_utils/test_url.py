"""Unit tests for URL canonicalization."""

from clinical_news.utils.url import canonicalize_url, is_http_url


class TestCanonicalizeUrl:
    """Tests for canonicalize_url."""

    def test_lowercases_scheme_and_host(self) -> None:
        """Scheme and host are case-insensitive."""
        assert (
            canonicalize_url("HTTPS://WWW.Drugs.COM/News/Item")
            == "https://www.drugs.com/News/Item"
        )

    def test_strips_tracking_params(self) -> None:
        """UTM and click identifiers are removed, other params kept."""
        url = "https://example.com/a?id=7&utm_source=rss&fbclid=xyz"

        assert canonicalize_url(url) == "https://example.com/a?id=7"

    def test_strips_fragment_and_trailing_slash(self) -> None:
        """Fragments and trailing slashes do not distinguish items."""
        assert (
            canonicalize_url("https://example.com/news/1/#comments")
            == "https://example.com/news/1"
        )

    def test_root_path_kept(self) -> None:
        """The root path keeps its slash."""
        assert canonicalize_url("https://example.com/") == "https://example.com/"

    def test_relative_resolved_against_base(self) -> None:
        """Relative links resolve against the feed URL."""
        assert (
            canonicalize_url("/news/1", base_url="https://example.com/feed.xml")
            == "https://example.com/news/1"
        )

    def test_blank(self) -> None:
        """Blank input yields an empty string."""
        assert canonicalize_url("   ") == ""


class TestIsHttpUrl:
    """Tests for is_http_url."""

    def test_http_schemes(self) -> None:
        """Only http and https are accepted."""
        assert is_http_url("https://example.com")
        assert is_http_url("HTTP://example.com")
        assert not is_http_url("ftp://example.com")
        assert not is_http_url("javascript:alert(1)")
