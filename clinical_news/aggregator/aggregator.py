"""Concurrent multi-source aggregation with per-source failure isolation."""

import time
import uuid
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import UTC, datetime

import httpx
import structlog

from clinical_news.adapters.base import AdapterResult, BaseAdapter, SourceAdapter
from clinical_news.adapters.errors import AdapterErrorClass, ErrorRecord
from clinical_news.adapters.registry import AdapterRegistry, UnknownSourceMethodError
from clinical_news.adapters.state_machine import RunState
from clinical_news.aggregator.dedupe import deduplicate
from clinical_news.aggregator.filters import (
    apply_filter,
    paginate,
    sort_by_published_desc,
)
from clinical_news.aggregator.metrics import AggregationMetrics
from clinical_news.aggregator.models import AggregationResult, SourceRunResult
from clinical_news.cache import SingleFlightCache
from clinical_news.classifier import Classifier
from clinical_news.config.schemas.sources import SourceConfig
from clinical_news.fetch.client import HttpFetcher
from clinical_news.fetch.config import FetchConfig
from clinical_news.models import NewsCategory, NewsFilter, NewsItem, NewsResponse


logger = structlog.get_logger()

MERGED_CACHE_KEY = "merged"

# Covers thread start-up and result hand-off, not network time
DEFAULT_GRACE_SECONDS = 0.25


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _failed(
    source_id: str,
    error_class: AdapterErrorClass,
    message: str,
) -> AdapterResult:
    return AdapterResult(
        items=[],
        error=ErrorRecord(
            error_class=error_class, message=message, source_id=source_id
        ),
        state=RunState.FAILED,
    )


class NewsAggregator:
    """Runs every enabled source concurrently and merges the results.

    Provides:
    - One worker thread per source, each bounded by its own deadline
    - Failure isolation (a failing or hanging source contributes nothing)
    - First-seen-wins deduplication in configured source order
    - Classification of every merged item
    - An optional short-lived cache of the merged set, loaded single-flight

    Total failure of every source is a degraded result, never an exception.
    """

    def __init__(  # noqa: PLR0913
        self,
        sources: Sequence[SourceConfig],
        registry: AdapterRegistry,
        fetch_config: FetchConfig | None = None,
        classifier: Classifier | None = None,
        cache_ttl_seconds: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
        now_fn: Callable[[], datetime] = _utc_now,
        transport: httpx.BaseTransport | None = None,
        grace_seconds: float = DEFAULT_GRACE_SECONDS,
    ) -> None:
        """Initialize the aggregator.

        Args:
            sources: Source configurations in their fixed dedup order.
            registry: Adapter per retrieval method.
            fetch_config: HTTP configuration for the per-source fetchers.
            classifier: Classifier applied to merged items.
            cache_ttl_seconds: Lifetime of the merged-set cache; 0 disables it.
            clock: Monotonic clock used for deadlines and the cache.
            now_fn: Wall clock passed to adapters as the aggregation time.
            transport: Optional httpx transport shared by the fetchers.
            grace_seconds: Slack added to each source deadline.
        """
        self._sources = list(sources)
        self._registry = registry
        self._fetch_config = fetch_config or FetchConfig()
        self._classifier = classifier or Classifier()
        self._clock = clock
        self._now_fn = now_fn
        self._transport = transport
        self._grace_seconds = grace_seconds
        self._metrics = AggregationMetrics()
        self._cache: SingleFlightCache[AggregationResult] | None = (
            SingleFlightCache(cache_ttl_seconds, clock=clock)
            if cache_ttl_seconds > 0
            else None
        )
        self._default_categories: dict[str, tuple[NewsCategory, ...]] = {
            s.id: s.default_categories for s in self._sources
        }

    @property
    def metrics(self) -> AggregationMetrics:
        """Metrics recorded by this aggregator."""
        return self._metrics

    @property
    def sources(self) -> list[SourceConfig]:
        """Configured sources, in dedup order."""
        return list(self._sources)

    def invalidate_cache(self) -> None:
        """Drop the cached merged set, if any."""
        if self._cache is not None:
            self._cache.invalidate(MERGED_CACHE_KEY)

    def aggregate(
        self,
        news_filter: NewsFilter | None = None,
        request_id: str | None = None,
    ) -> NewsResponse:
        """Collect, filter, sort and paginate news items.

        Args:
            news_filter: Optional filter and pagination options.
            request_id: Request identifier for logging.

        Returns:
            One page of items plus the pre-pagination filtered total.
        """
        news_filter = news_filter or NewsFilter()
        collected = self.collect(request_id)

        filtered = sort_by_published_desc(apply_filter(collected.items, news_filter))
        page = paginate(filtered, news_filter.page, news_filter.page_size)

        logger.bind(component="aggregator", request_id=collected.request_id).info(
            "aggregate_page",
            total=len(filtered),
            page=news_filter.page,
            page_size=news_filter.page_size,
            returned=len(page),
        )
        return NewsResponse(
            items=page,
            total=len(filtered),
            page=news_filter.page,
            page_size=news_filter.page_size,
        )

    def collect(self, request_id: str | None = None) -> AggregationResult:
        """Fetch every source and return the merged, classified item set.

        Concurrent callers share one run while the cache is enabled. A run
        in which no source succeeded is handed to waiting callers but not
        cached.
        """
        request_id = request_id or uuid.uuid4().hex[:12]
        if self._cache is None:
            return self._collect_uncached(request_id)

        def load() -> tuple[AggregationResult, float | None]:
            result = self._collect_uncached(request_id)
            return result, (None if result.sources_succeeded else 0.0)

        return self._cache.get_or_load(MERGED_CACHE_KEY, load)

    def _collect_uncached(self, request_id: str) -> AggregationResult:
        log = logger.bind(component="aggregator", request_id=request_id)
        now = self._now_fn()
        started_at = _utc_now()

        active = [s for s in self._sources if s.enabled]
        log.info(
            "aggregation_started",
            source_count=len(active),
            skipped_count=len(self._sources) - len(active),
        )

        source_results = self._run_sources(active, now, request_id, log)

        merged: list[NewsItem] = []
        for run in source_results:
            if run.success:
                merged.extend(run.result.items)

        unique, duplicates = deduplicate(merged)
        valid = [item for item in unique if item.title.strip() and item.url.strip()]
        invalid = len(unique) - len(valid)

        classified = [
            self._classifier.annotate(
                item, self._default_categories.get(item.source_id, ())
            )
            for item in valid
        ]

        self._metrics.record_run(duplicates)
        finished_at = _utc_now()
        result = AggregationResult(
            request_id=request_id,
            started_at=started_at,
            finished_at=finished_at,
            source_results=source_results,
            items=classified,
            duplicates_dropped=duplicates,
            invalid_dropped=invalid,
        )
        log.info(
            "aggregation_complete",
            duration_ms=round(result.duration_ms, 2),
            items=len(classified),
            duplicates_dropped=duplicates,
            invalid_dropped=invalid,
            sources_succeeded=result.sources_succeeded,
            sources_failed=result.sources_failed,
        )
        return result

    def _run_sources(
        self,
        sources: list[SourceConfig],
        now: datetime,
        request_id: str,
        log: structlog.stdlib.BoundLogger,
    ) -> list[SourceRunResult]:
        """Run one worker per source and join each against its own deadline.

        Results come back in configured order regardless of completion order.
        Workers still running at their deadline are abandoned.
        """
        if not sources:
            return []

        executor = ThreadPoolExecutor(
            max_workers=len(sources), thread_name_prefix="news-source"
        )
        started = self._clock()
        try:
            futures: list[tuple[SourceConfig, Future[SourceRunResult], float]] = [
                (
                    source,
                    executor.submit(self._run_single_source, source, now, request_id),
                    started + self._budget_seconds(source),
                )
                for source in sources
            ]

            results: list[SourceRunResult] = []
            for source, future, deadline in futures:
                remaining = max(0.0, deadline - self._clock())
                try:
                    results.append(future.result(timeout=remaining))
                except TimeoutError:
                    results.append(self._timed_out(source, started, log))
                except Exception as e:  # noqa: BLE001
                    log.error(
                        "source_execution_error",
                        source_id=source.id,
                        error=str(e),
                    )
                    self._metrics.record_failure(source.id, AdapterErrorClass.FETCH)
                    results.append(
                        SourceRunResult(
                            source_id=source.id,
                            method=source.method.value,
                            source=source.source,
                            result=_failed(
                                source.id,
                                AdapterErrorClass.FETCH,
                                f"Execution error: {e}",
                            ),
                        )
                    )
            return results
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _budget_seconds(self, source: SourceConfig) -> float:
        """Time a source may take before it is abandoned.

        Adapters with a fallback strategy get one timeout per strategy.
        """
        try:
            adapter = self._registry.get(source.method)
        except UnknownSourceMethodError:
            return self._grace_seconds
        strategies = 1
        if isinstance(adapter, BaseAdapter) and adapter.has_fallback(source):
            strategies = 2
        return source.timeout_seconds * strategies + self._grace_seconds

    def _timed_out(
        self,
        source: SourceConfig,
        started: float,
        log: structlog.stdlib.BoundLogger,
    ) -> SourceRunResult:
        duration_ms = (self._clock() - started) * 1000
        log.warning(
            "source_timed_out",
            source_id=source.id,
            timeout_seconds=source.timeout_seconds,
            duration_ms=round(duration_ms, 2),
        )
        self._metrics.record_timeout(source.id)
        return SourceRunResult(
            source_id=source.id,
            method=source.method.value,
            source=source.source,
            result=_failed(
                source.id,
                AdapterErrorClass.TIMEOUT,
                f"Source exceeded its {source.timeout_seconds}s budget",
            ),
            duration_ms=duration_ms,
            timed_out=True,
        )

    def _run_single_source(
        self,
        source: SourceConfig,
        now: datetime,
        request_id: str,
    ) -> SourceRunResult:
        """Run the adapter for a single source on a worker thread."""
        start_time_ns = time.perf_counter_ns()
        log = logger.bind(
            component="aggregator",
            request_id=request_id,
            source_id=source.id,
            method=source.method.value,
        )
        log.info("source_started")

        try:
            adapter: SourceAdapter = self._registry.get(source.method)
        except UnknownSourceMethodError as e:
            log.warning("unsupported_method")
            self._metrics.record_failure(source.id, AdapterErrorClass.SCHEMA)
            return SourceRunResult(
                source_id=source.id,
                method=source.method.value,
                source=source.source,
                result=_failed(source.id, AdapterErrorClass.SCHEMA, str(e)),
            )

        # Each worker owns its fetcher; nothing mutable is shared between tasks.
        http_client = HttpFetcher(
            self._fetch_config, request_id=request_id, transport=self._transport
        )
        result = adapter.fetch(source, http_client, now)
        duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000

        self._metrics.record_duration(source.id, duration_ms)
        if result.used_fallback:
            self._metrics.record_fallback(source.id)

        if result.error:
            self._metrics.record_failure(source.id, result.error.error_class)
            log.warning(
                "source_failed",
                error_class=result.error.error_class.value,
                duration_ms=round(duration_ms, 2),
            )
        else:
            self._metrics.record_items(source.id, len(result.items))
            log.info(
                "source_complete",
                items_emitted=len(result.items),
                parse_warnings_count=len(result.parse_warnings),
                used_fallback=result.used_fallback,
                duration_ms=round(duration_ms, 2),
            )

        return SourceRunResult(
            source_id=source.id,
            method=source.method.value,
            source=source.source,
            result=result,
            duration_ms=duration_ms,
        )
