"""Base adapter interface and shared mapping helpers."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

import structlog

from clinical_news.adapters.errors import (
    AdapterError,
    AdapterErrorClass,
    ErrorRecord,
    ParseError,
)
from clinical_news.adapters.state_machine import RunState, SourceRun
from clinical_news.config.schemas.sources import SourceConfig
from clinical_news.fetch.client import HttpFetcher
from clinical_news.fetch.models import FetchResult
from clinical_news.models import NewsItem
from clinical_news.utils.dates import normalize_published_at
from clinical_news.utils.hashing import compute_item_id
from clinical_news.utils.text import html_to_text
from clinical_news.utils.url import canonicalize_url, is_http_url


EntryMapper = Callable[[Any, SourceConfig, datetime], NewsItem | None]


logger = structlog.get_logger()


@dataclass(frozen=True)
class AdapterResult:
    """Result of one adapter run for one source.

    A failed run carries an empty item list and an ErrorRecord; it is a
    degraded result, never an exception.
    """

    items: list[NewsItem]
    parse_warnings: list[str] = field(default_factory=list)
    error: ErrorRecord | None = None
    state: RunState = RunState.DONE
    used_fallback: bool = False

    @property
    def success(self) -> bool:
        """Check if the run succeeded."""
        return self.state == RunState.DONE

    @property
    def items_count(self) -> int:
        """Get number of items produced."""
        return len(self.items)


@runtime_checkable
class SourceAdapter(Protocol):
    """Protocol for source adapters.

    Adapters are responsible for:
    1. Fetching content from one upstream feed or API family
    2. Mapping entries into normalized NewsItems
    3. Reporting failures as data instead of raising
    """

    def fetch(
        self,
        source_config: SourceConfig,
        http_client: HttpFetcher,
        now: datetime,
    ) -> AdapterResult:
        """Fetch items from a source.

        Args:
            source_config: Configuration for the source.
            http_client: HTTP client for fetching.
            now: Current timestamp for consistency.

        Returns:
            AdapterResult with items and status.
        """
        ...


class BaseAdapter(ABC):
    """Template for adapters with a primary and an optional fallback strategy.

    Subclasses implement the strategy hooks. fetch() drives them:
    the fallback runs only when the primary strategy yields zero usable
    items (including on primary failure), and at most once per call.
    """

    method: str = ""

    def __init__(self, request_id: str = "") -> None:
        """Initialize the adapter.

        Args:
            request_id: Request identifier for logging.
        """
        self._request_id = request_id

    def fetch(
        self,
        source_config: SourceConfig,
        http_client: HttpFetcher,
        now: datetime,
    ) -> AdapterResult:
        """Run the primary strategy, then the fallback if needed.

        Args:
            source_config: Configuration for the source.
            http_client: HTTP client for fetching.
            now: Current timestamp for consistency.

        Returns:
            AdapterResult with items and status. Never raises.
        """
        log = logger.bind(
            component="adapter",
            request_id=self._request_id,
            source_id=source_config.id,
            method=self.method,
        )
        run = SourceRun(source_config.id, self._request_id)
        parse_warnings: list[str] = []

        try:
            run.advance(RunState.FETCHING)
            items, primary_error = self._run_primary(
                source_config, http_client, now, run, parse_warnings
            )

            if items or not self.has_fallback(source_config):
                return self._finish(run, items, parse_warnings, primary_error, log)

            if primary_error is not None:
                parse_warnings.append(
                    f"Primary strategy failed: {primary_error.message}"
                )

            run.advance(RunState.FALLBACK)
            log.info(
                "fallback_attempted",
                primary_error_class=primary_error.error_class.value
                if primary_error
                else None,
            )
            try:
                payload = self._fetch_fallback(source_config, http_client, now)
                items = self._limit(
                    self._parse_fallback(payload, source_config, now, parse_warnings),
                    source_config,
                )
                fallback_error = None
            except AdapterError as e:
                items, fallback_error = [], ErrorRecord.from_exception(e)

            return self._finish(run, items, parse_warnings, fallback_error, log)

        except Exception as e:  # noqa: BLE001
            log.warning("unexpected_error", error=str(e))
            run.fail()
            return AdapterResult(
                items=[],
                parse_warnings=parse_warnings,
                error=ErrorRecord(
                    error_class=AdapterErrorClass.PARSE,
                    message=f"Unexpected error: {e}",
                    source_id=source_config.id,
                ),
                state=RunState.FAILED,
                used_fallback=run.fell_back,
            )

    def _run_primary(
        self,
        source_config: SourceConfig,
        http_client: HttpFetcher,
        now: datetime,
        run: SourceRun,
        parse_warnings: list[str],
    ) -> tuple[list[NewsItem], ErrorRecord | None]:
        try:
            payload = self._fetch_primary(source_config, http_client, now)
            run.advance(RunState.PARSING)
            items = self._parse_primary(payload, source_config, now, parse_warnings)
        except AdapterError as e:
            return [], ErrorRecord.from_exception(e)
        return self._limit(items, source_config), None

    def _finish(
        self,
        run: SourceRun,
        items: list[NewsItem],
        parse_warnings: list[str],
        error: ErrorRecord | None,
        log: structlog.stdlib.BoundLogger,
    ) -> AdapterResult:
        run.advance(RunState.DONE if error is None else RunState.FAILED)
        path = [state.value for state in run.history]
        if error is not None:
            log.warning(
                "source_failed",
                error_class=error.error_class.value,
                error=error.message,
                path=path,
            )
            return AdapterResult(
                items=[],
                parse_warnings=parse_warnings,
                error=error,
                state=run.state,
                used_fallback=run.fell_back,
            )

        log.info(
            "adapter_complete",
            items_emitted=len(items),
            parse_warnings_count=len(parse_warnings),
            path=path,
        )
        return AdapterResult(
            items=items,
            parse_warnings=parse_warnings,
            state=run.state,
            used_fallback=run.fell_back,
        )

    @abstractmethod
    def _fetch_primary(
        self,
        source_config: SourceConfig,
        http_client: HttpFetcher,
        now: datetime,
    ) -> Any:
        """Fetch the raw payload for the primary strategy.

        Raises:
            AdapterError: On transport or payload failure.
        """

    @abstractmethod
    def _parse_primary(
        self,
        payload: Any,
        source_config: SourceConfig,
        now: datetime,
        parse_warnings: list[str],
    ) -> list[NewsItem]:
        """Map the primary payload to items, skipping malformed entries.

        Raises:
            AdapterError: When the payload as a whole is unusable.
        """

    def has_fallback(self, source_config: SourceConfig) -> bool:  # noqa: ARG002
        """Whether a fallback strategy is available for this source."""
        return False

    def _fetch_fallback(
        self,
        source_config: SourceConfig,
        http_client: HttpFetcher,
        now: datetime,
    ) -> Any:
        """Subclasses that enable a fallback must override this."""
        raise NotImplementedError

    def _parse_fallback(
        self,
        payload: Any,
        source_config: SourceConfig,
        now: datetime,
        parse_warnings: list[str],
    ) -> list[NewsItem]:
        """Subclasses that enable a fallback must override this."""
        raise NotImplementedError

    def get_bytes(
        self,
        http_client: HttpFetcher,
        source_config: SourceConfig,
        url: str,
        params: dict[str, str] | None = None,
    ) -> FetchResult:
        """Fetch a URL within the source budget, raising on failure.

        Raises:
            AdapterError: If the request failed or returned a non-2xx status.
        """
        result = http_client.fetch(
            source_id=source_config.id,
            url=url,
            params=params,
            extra_headers=source_config.headers or None,
            timeout=source_config.timeout_seconds,
        )
        if not result.is_success:
            raise AdapterError.from_fetch_result(result, source_config.id)
        return result

    def get_json(
        self,
        http_client: HttpFetcher,
        source_config: SourceConfig,
        url: str,
        params: dict[str, str] | None = None,
    ) -> Any:
        """Fetch a URL and decode its JSON body.

        Raises:
            AdapterError: If the request failed.
            ParseError: If the body is not valid JSON.
        """
        result = self.get_bytes(http_client, source_config, url, params)
        return self.decode_json(result, source_config.id)

    @staticmethod
    def decode_json(result: FetchResult, source_id: str) -> Any:
        """Decode a JSON body.

        Raises:
            ParseError: If the body is not valid JSON.
        """
        try:
            return result.json_body()
        except ValueError as e:
            raise ParseError(
                f"Invalid JSON response: {e}",
                source_id=source_id,
                context=result.text[:200],
            ) from e

    def map_entries(
        self,
        entries: list[Any],
        source_config: SourceConfig,
        now: datetime,
        parse_warnings: list[str],
        mapper: EntryMapper | None = None,
    ) -> list[NewsItem]:
        """Map upstream entries one by one, dropping malformed ones.

        Each entry goes through mapper, map_entry() by default. An entry
        that returns None or raises is skipped with a parse warning.
        """
        map_one = mapper or self.map_entry
        items: list[NewsItem] = []
        for index, entry in enumerate(entries):
            try:
                item = map_one(entry, source_config, now)
            except Exception as e:  # noqa: BLE001
                parse_warnings.append(f"Failed to parse entry {index}: {e}")
                continue
            if item is None:
                parse_warnings.append(f"Dropped entry {index}: missing title or url")
                continue
            items.append(item)
        return items

    def map_entry(
        self,
        entry: Any,
        source_config: SourceConfig,
        now: datetime,
    ) -> NewsItem | None:
        """Map one upstream entry to a NewsItem (None drops it).

        Subclasses that call map_entries() without a mapper must override this.
        """
        raise NotImplementedError

    def build_item(
        self,
        source_config: SourceConfig,
        now: datetime,
        *,
        title: str | None,
        url: str | None,
        guid: str | None = None,
        description: str | None = None,
        content: str | None = None,
        published_at: datetime | None = None,
        image_url: str | None = None,
    ) -> NewsItem | None:
        """Build a normalized NewsItem, or None if title or url is unusable.

        Args:
            source_config: Source the entry came from.
            now: Aggregation timestamp, used for the clock-skew rule.
            title: Raw title (HTML allowed).
            url: Raw link.
            guid: Upstream guid; the link is used when absent.
            description: Raw summary (HTML allowed).
            content: Raw body (HTML allowed).
            published_at: Parsed publication time.
            image_url: Preview image link.

        Returns:
            NewsItem, or None for malformed entries.
        """
        clean_title = html_to_text(title)
        canonical_url = canonicalize_url(url or "", base_url=source_config.url)
        if not clean_title or not canonical_url or not is_http_url(canonical_url):
            return None

        key = (guid or "").strip() or canonical_url
        image = (image_url or "").strip()

        return NewsItem(
            id=compute_item_id(source_config.source.value, key),
            title=clean_title,
            description=html_to_text(description),
            content=html_to_text(content),
            url=canonical_url,
            image_url=image if is_http_url(image) else None,
            published_at=normalize_published_at(published_at, now),
            source=source_config.source,
            source_id=source_config.id,
        )

    @staticmethod
    def _limit(items: list[NewsItem], source_config: SourceConfig) -> list[NewsItem]:
        if source_config.max_items <= 0:
            return items
        return items[: source_config.max_items]


def first_str(data: Mapping[str, Any], *keys: str) -> str:
    """Return the first non-empty string value among keys."""
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""
