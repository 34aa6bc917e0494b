"""URL canonicalization used for deduplication."""

from urllib.parse import parse_qsl, urlencode, urljoin, urlparse, urlunparse


# Tracking parameters stripped from every URL
DEFAULT_STRIP_PARAMS: tuple[str, ...] = (
    # UTM parameters
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "utm_id",
    # Social/sharing
    "fbclid",
    "gclid",
    "msclkid",
    "twclid",
    "igshid",
    # Analytics
    "_ga",
    "_gl",
    "mc_cid",
    "mc_eid",
    # Email tracking
    "mkt_tok",
    "trk",
)


def canonicalize_url(
    url: str,
    strip_params: tuple[str, ...] | None = None,
    base_url: str | None = None,
) -> str:
    """Canonicalize a URL for deduplication.

    Canonicalization includes:
    - Resolving relative URLs against base_url
    - Lowercasing the scheme and host
    - Removing trailing slashes (except for root path)
    - Stripping tracking query parameters
    - Removing fragments

    Args:
        url: The URL to canonicalize.
        strip_params: Query parameters to strip. If None, uses defaults.
        base_url: Optional base URL for resolving relative URLs.

    Returns:
        Canonicalized URL string, or an empty string for blank input.
    """
    url = (url or "").strip()
    if not url:
        return ""

    if base_url and not is_http_url(url):
        url = urljoin(base_url, url)

    parsed = urlparse(url)

    scheme = parsed.scheme.lower()
    netloc = parsed.netloc.lower()

    path = parsed.path
    if path != "/" and path.endswith("/"):
        path = path.rstrip("/")

    params_to_strip = strip_params if strip_params is not None else DEFAULT_STRIP_PARAMS
    query = _filter_query_params(parsed.query, params_to_strip)

    return urlunparse((scheme, netloc, path, parsed.params, query, ""))


def is_http_url(url: str) -> bool:
    """Check that a URL has an http(s) scheme."""
    return url.lower().startswith(("http://", "https://"))


def _filter_query_params(query: str, strip_params: tuple[str, ...]) -> str:
    """Filter out tracking parameters from a query string, keeping order."""
    if not query:
        return ""

    strip_set = {p.lower() for p in strip_params}
    kept = [
        (key, value)
        for key, value in parse_qsl(query, keep_blank_values=True)
        if key.lower() not in strip_set
    ]
    return urlencode(kept, safe="") if kept else ""
