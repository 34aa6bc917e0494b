"""RSS/Atom feed adapter with a JSON proxy strategy and a direct fallback."""

import calendar
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import feedparser  # type: ignore[import-untyped]

from clinical_news.adapters.base import BaseAdapter, first_str
from clinical_news.adapters.errors import AdapterError, ParseError, SchemaError
from clinical_news.config.schemas.sources import SourceConfig
from clinical_news.fetch.client import HttpFetcher
from clinical_news.models import NewsItem
from clinical_news.utils.dates import parse_date


RSS2JSON_ENDPOINT = "https://api.rss2json.com/v1/api.json"


class RssFeedAdapter(BaseAdapter):
    """Adapter for RSS 2.0 and Atom feeds.

    With a proxy API key the rss2json proxy is the primary strategy and a
    direct fetch of the feed XML (parsed with feedparser) is the fallback.
    Without a key the direct fetch is the only strategy.
    """

    method = "rss_feed"

    def __init__(
        self,
        proxy_api_key: str | None = None,
        proxy_endpoint: str = RSS2JSON_ENDPOINT,
        request_id: str = "",
    ) -> None:
        """Initialize the RSS adapter.

        Args:
            proxy_api_key: rss2json API key. None disables the proxy.
            proxy_endpoint: rss2json endpoint URL.
            request_id: Request identifier for logging.
        """
        super().__init__(request_id)
        self._proxy_api_key = proxy_api_key
        self._proxy_endpoint = proxy_endpoint

    @property
    def uses_proxy(self) -> bool:
        """Whether the proxy is the primary strategy."""
        return bool(self._proxy_api_key)

    def has_fallback(self, source_config: SourceConfig) -> bool:  # noqa: ARG002
        """Direct fetch is the fallback only when the proxy is primary."""
        return self.uses_proxy

    def _fetch_primary(
        self,
        source_config: SourceConfig,
        http_client: HttpFetcher,
        now: datetime,
    ) -> Any:
        if self.uses_proxy:
            return self._fetch_proxy(source_config, http_client)
        return self._fetch_direct(source_config, http_client, now)

    def _parse_primary(
        self,
        payload: Any,
        source_config: SourceConfig,
        now: datetime,
        parse_warnings: list[str],
    ) -> list[NewsItem]:
        if self.uses_proxy:
            return self._parse_proxy(payload, source_config, now, parse_warnings)
        return self._parse_direct(payload, source_config, now, parse_warnings)

    def _fetch_fallback(
        self,
        source_config: SourceConfig,
        http_client: HttpFetcher,
        now: datetime,
    ) -> Any:
        return self._fetch_direct(source_config, http_client, now)

    def _parse_fallback(
        self,
        payload: Any,
        source_config: SourceConfig,
        now: datetime,
        parse_warnings: list[str],
    ) -> list[NewsItem]:
        return self._parse_direct(payload, source_config, now, parse_warnings)

    # Proxy strategy

    def _fetch_proxy(
        self,
        source_config: SourceConfig,
        http_client: HttpFetcher,
    ) -> Any:
        params = {
            "rss_url": source_config.url,
            "api_key": self._proxy_api_key or "",
        }
        data = self.get_json(http_client, source_config, self._proxy_endpoint, params)

        if not isinstance(data, Mapping):
            raise SchemaError(
                "Proxy response is not an object",
                source_id=source_config.id,
                expected="object",
                actual=type(data).__name__,
            )
        status = data.get("status")
        if status != "ok":
            raise AdapterError(
                f"Proxy returned status {status!r}: {data.get('message', '')}".strip(),
                source_id=source_config.id,
            )
        return data

    def _parse_proxy(
        self,
        payload: Mapping[str, Any],
        source_config: SourceConfig,
        now: datetime,
        parse_warnings: list[str],
    ) -> list[NewsItem]:
        entries = payload.get("items")
        if not isinstance(entries, list):
            raise SchemaError(
                "Proxy response has no items list",
                source_id=source_config.id,
                field="items",
                expected="list",
                actual=type(entries).__name__,
            )
        return self.map_entries(entries, source_config, now, parse_warnings)

    def map_entry(
        self,
        entry: Any,
        source_config: SourceConfig,
        now: datetime,
    ) -> NewsItem | None:
        """Map one rss2json item."""
        if not isinstance(entry, Mapping):
            return None

        enclosure = entry.get("enclosure")
        image_url = ""
        if isinstance(enclosure, Mapping):
            enclosure_type = str(enclosure.get("type") or "")
            if not enclosure_type or enclosure_type.startswith("image/"):
                image_url = first_str(enclosure, "link", "url")
        if not image_url:
            image_url = first_str(entry, "thumbnail")

        return self.build_item(
            source_config,
            now,
            title=first_str(entry, "title"),
            url=first_str(entry, "link"),
            guid=first_str(entry, "guid"),
            description=first_str(entry, "description"),
            content=first_str(entry, "content"),
            published_at=parse_date(first_str(entry, "pubDate")),
            image_url=image_url,
        )

    # Direct strategy

    def _fetch_direct(
        self,
        source_config: SourceConfig,
        http_client: HttpFetcher,
        now: datetime,  # noqa: ARG002
    ) -> bytes:
        return self.get_bytes(http_client, source_config, source_config.url).body_bytes

    def _parse_direct(
        self,
        payload: bytes,
        source_config: SourceConfig,
        now: datetime,
        parse_warnings: list[str],
    ) -> list[NewsItem]:
        feed = feedparser.parse(payload)

        if feed.bozo and feed.bozo_exception:
            if not feed.entries:
                raise ParseError(
                    f"Feed could not be parsed: {feed.bozo_exception}",
                    source_id=source_config.id,
                    context=payload[:200].decode("utf-8", errors="replace"),
                )
            # Feed had parsing issues but is still usable
            parse_warnings.append(f"Feed parsing warning: {feed.bozo_exception}")

        return self.map_entries(
            list(feed.entries),
            source_config,
            now,
            parse_warnings,
            mapper=self._map_feed_entry,
        )

    def _map_feed_entry(
        self,
        entry: feedparser.FeedParserDict,
        source_config: SourceConfig,
        now: datetime,
    ) -> NewsItem | None:
        link = entry.get("link", "")
        if not link:
            links = entry.get("links", [])
            for link_entry in links:
                if link_entry.get("rel") == "alternate":
                    link = link_entry.get("href", "")
                    break

        content = ""
        content_blocks = entry.get("content") or []
        if content_blocks:
            content = content_blocks[0].get("value", "")

        return self.build_item(
            source_config,
            now,
            title=entry.get("title", ""),
            url=link,
            guid=entry.get("id", ""),
            description=entry.get("summary", "") or entry.get("description", ""),
            content=content,
            published_at=self._extract_date(entry),
            image_url=self._extract_image(entry),
        )

    def _extract_date(self, entry: feedparser.FeedParserDict) -> datetime | None:
        """Extract the publication date, preferring feedparser's parsed tuples."""
        for key in ("published_parsed", "updated_parsed"):
            parsed = entry.get(key)
            if parsed:
                try:
                    return datetime.fromtimestamp(calendar.timegm(parsed), tz=UTC)
                except (ValueError, OverflowError):
                    continue

        return parse_date(entry.get("published") or entry.get("updated"))

    def _extract_image(self, entry: feedparser.FeedParserDict) -> str:
        """Extract an image URL from enclosures, media content or thumbnails."""
        for enclosure in entry.get("enclosures", []) or []:
            if str(enclosure.get("type", "")).startswith("image/"):
                href = enclosure.get("href") or enclosure.get("url")
                if href:
                    return str(href)

        for media in entry.get("media_content", []) or []:
            medium = media.get("medium") or ""
            media_type = str(media.get("type") or "")
            if medium == "image" or media_type.startswith("image/"):
                if media.get("url"):
                    return str(media["url"])

        for thumbnail in entry.get("media_thumbnail", []) or []:
            if thumbnail.get("url"):
                return str(thumbnail["url"])

        return ""
