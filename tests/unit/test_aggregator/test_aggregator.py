"""Tests for NewsAggregator with fake adapters."""

import threading
import time
from collections.abc import Callable
from datetime import datetime, timedelta

import pytest

from clinical_news.adapters.base import AdapterResult
from clinical_news.adapters.errors import AdapterErrorClass, ErrorRecord
from clinical_news.adapters.registry import AdapterRegistry
from clinical_news.adapters.state_machine import RunState
from clinical_news.aggregator.aggregator import DEFAULT_GRACE_SECONDS, NewsAggregator
from clinical_news.config.schemas.base import SourceMethod
from clinical_news.config.schemas.sources import SourceConfig
from clinical_news.fetch.client import HttpFetcher
from clinical_news.models import NewsCategory, NewsFilter, NewsItem, NewsSource
from tests.helpers.factories import make_item, make_source_config
from tests.helpers.time import FIXED_NOW, FakeClock


Behaviour = Callable[[SourceConfig], AdapterResult]


class FakeAdapter:
    """Adapter whose result per source id is scripted by the test."""

    def __init__(self, behaviours: dict[str, Behaviour]) -> None:
        self.behaviours = behaviours
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def fetch(
        self,
        source_config: SourceConfig,
        http_client: HttpFetcher,  # noqa: ARG002
        now: datetime,  # noqa: ARG002
    ) -> AdapterResult:
        with self._lock:
            self.calls.append(source_config.id)
        return self.behaviours[source_config.id](source_config)


def returns(*items: NewsItem) -> Behaviour:
    """Behaviour returning fixed items."""
    return lambda _: AdapterResult(items=list(items))


def fails(error_class: AdapterErrorClass = AdapterErrorClass.FETCH) -> Behaviour:
    """Behaviour returning a failed result."""

    def behaviour(source_config: SourceConfig) -> AdapterResult:
        return AdapterResult(
            items=[],
            error=ErrorRecord(
                error_class=error_class,
                message="HTTP 503",
                source_id=source_config.id,
            ),
            state=RunState.FAILED,
        )

    return behaviour


def blocks_on(event: threading.Event) -> Behaviour:
    """Behaviour that hangs until the event is set."""

    def behaviour(_: SourceConfig) -> AdapterResult:
        event.wait(10.0)
        return AdapterResult(items=[])

    return behaviour


def item_for(source_id: str, n: int, **kwargs: object) -> NewsItem:
    """Build an item attributed to a configured source."""
    return make_item(
        title=f"{source_id} story {n}",
        url=f"https://example.com/{source_id}/{n}",
        source_id=source_id,
        **kwargs,  # type: ignore[arg-type]
    )


def build_aggregator(
    behaviours: dict[str, Behaviour],
    sources: list[SourceConfig] | None = None,
    **kwargs: object,
) -> tuple[NewsAggregator, FakeAdapter]:
    """Build an aggregator over one RSS source per behaviour."""
    adapter = FakeAdapter(behaviours)
    if sources is None:
        sources = [make_source_config(source_id=sid) for sid in behaviours]
    aggregator = NewsAggregator(
        sources=sources,
        registry=AdapterRegistry({SourceMethod.RSS_FEED: adapter}),
        now_fn=lambda: FIXED_NOW,
        **kwargs,  # type: ignore[arg-type]
    )
    return aggregator, adapter


class TestMerge:
    """Merging, dedup and classification."""

    def test_merges_in_source_order(self) -> None:
        """Items from every source are merged in configured order."""
        aggregator, _ = build_aggregator(
            {
                "src-a": returns(item_for("src-a", 1), item_for("src-a", 2)),
                "src-b": returns(item_for("src-b", 1)),
            }
        )

        result = aggregator.collect("req-1")

        assert [i.title for i in result.items] == [
            "src-a story 1",
            "src-a story 2",
            "src-b story 1",
        ]
        assert [r.source_id for r in result.source_results] == ["src-a", "src-b"]
        assert result.sources_succeeded == 2

    def test_duplicate_keeps_first_source(self) -> None:
        """The same URL from a later source is dropped."""
        shared = "https://example.com/shared"
        aggregator, _ = build_aggregator(
            {
                "src-a": returns(make_item(title="A copy", url=shared, source_id="src-a")),
                "src-b": returns(make_item(title="B copy", url=shared, source_id="src-b")),
            }
        )

        result = aggregator.collect()

        assert [i.title for i in result.items] == ["A copy"]
        assert result.duplicates_dropped == 1

    def test_items_are_classified_with_source_defaults(self) -> None:
        """Each item gets its feed's default categories first."""
        source = make_source_config(
            source_id="fda-recalls",
            default_categories=(NewsCategory.SAFETY_ALERT,),
        )
        aggregator, _ = build_aggregator(
            {
                "fda-recalls": returns(
                    item_for("fda-recalls", 1, description="Phase 3 oncology trial")
                )
            },
            sources=[source],
        )

        item = aggregator.collect().items[0]

        assert item.categories[0] == NewsCategory.SAFETY_ALERT
        assert NewsCategory.CLINICAL_TRIAL in item.categories
        assert "Phase 3" in item.tags

    def test_blank_titles_dropped(self) -> None:
        """Whitespace-only titles never reach callers."""
        aggregator, _ = build_aggregator(
            {"src-a": returns(item_for("src-a", 1), make_item(title="   "))}
        )

        result = aggregator.collect()

        assert len(result.items) == 1
        assert result.invalid_dropped == 1

    def test_disabled_sources_skipped(self) -> None:
        """Disabled sources are never run."""
        sources = [
            make_source_config(source_id="on"),
            make_source_config(source_id="off", enabled=False),
        ]
        aggregator, adapter = build_aggregator(
            {"on": returns(item_for("on", 1)), "off": returns(item_for("off", 1))},
            sources=sources,
        )

        result = aggregator.collect()

        assert adapter.calls == ["on"]
        assert len(result.source_results) == 1


class TestFailureIsolation:
    """A failing source never affects the others."""

    def test_partial_failure(self) -> None:
        """Failed sources contribute nothing; the rest are kept."""
        behaviours: dict[str, Behaviour] = {
            f"src-{i}": returns(item_for(f"src-{i}", 1)) for i in range(5)
        }
        behaviours["src-2"] = fails()
        aggregator, _ = build_aggregator(behaviours)

        result = aggregator.collect()

        assert {i.source_id for i in result.items} == {
            "src-0",
            "src-1",
            "src-3",
            "src-4",
        }
        assert result.sources_failed == 1
        assert aggregator.metrics.get_failures_total("src-2") == 1

    def test_hanging_source_is_abandoned(self) -> None:
        """A source past its deadline is dropped without delaying the rest."""
        release = threading.Event()
        sources = [
            make_source_config(source_id=f"src-{i}", timeout_seconds=0.2)
            for i in range(5)
        ]
        behaviours: dict[str, Behaviour] = {
            f"src-{i}": returns(item_for(f"src-{i}", 1)) for i in range(5)
        }
        behaviours["src-2"] = blocks_on(release)
        aggregator, _ = build_aggregator(
            behaviours, sources=sources, grace_seconds=0.1
        )

        started = time.monotonic()
        try:
            result = aggregator.collect()
            elapsed = time.monotonic() - started
        finally:
            release.set()

        # Budget is timeout plus grace (0.3 s); the hung worker waits up to 10 s
        assert elapsed < 0.3 + 0.5
        assert len(result.items) == 4
        timed_out = [r for r in result.source_results if r.timed_out]
        assert [r.source_id for r in timed_out] == ["src-2"]
        assert timed_out[0].result.error is not None
        assert timed_out[0].result.error.error_class == AdapterErrorClass.TIMEOUT
        assert aggregator.metrics.timeouts_by_source["src-2"] == 1

    def test_default_deadline_stays_near_timeout(self) -> None:
        """Without a fallback a hung source is dropped shortly after its timeout."""
        release = threading.Event()
        source = make_source_config(source_id="slow", timeout_seconds=0.2)
        aggregator, _ = build_aggregator({"slow": blocks_on(release)}, sources=[source])

        started = time.monotonic()
        try:
            result = aggregator.collect()
            elapsed = time.monotonic() - started
        finally:
            release.set()

        assert result.sources_failed == 1
        assert elapsed < 0.2 + DEFAULT_GRACE_SECONDS + 0.5

    def test_adapter_exception_is_contained(self) -> None:
        """An adapter that raises is reported as a failed source."""

        def explode(_: SourceConfig) -> AdapterResult:
            msg = "boom"
            raise RuntimeError(msg)

        aggregator, _ = build_aggregator(
            {"bad": explode, "good": returns(item_for("good", 1))}
        )

        result = aggregator.collect()

        assert [i.source_id for i in result.items] == ["good"]
        bad = result.source_results[0]
        assert not bad.success
        assert bad.result.error is not None
        assert "boom" in bad.result.error.message

    def test_unregistered_method(self) -> None:
        """A source whose method has no adapter fails with SCHEMA."""
        sources = [
            make_source_config(source_id="papers", method=SourceMethod.PUBMED),
            make_source_config(source_id="feed"),
        ]
        aggregator, _ = build_aggregator(
            {"feed": returns(item_for("feed", 1))}, sources=sources
        )

        result = aggregator.collect()

        papers = result.source_results[0]
        assert papers.result.error is not None
        assert papers.result.error.error_class == AdapterErrorClass.SCHEMA
        assert len(result.items) == 1

    def test_total_failure_is_empty_not_error(self) -> None:
        """When every source fails the result is empty."""
        aggregator, _ = build_aggregator({"a": fails(), "b": fails()})

        response = aggregator.aggregate()

        assert response.items == []
        assert response.total == 0


class TestCaching:
    """The merged set is cached for a short TTL."""

    def test_reuses_merged_set(self) -> None:
        """A second call within the TTL runs no adapters."""
        clock = FakeClock()
        aggregator, adapter = build_aggregator(
            {"src-a": returns(item_for("src-a", 1))},
            cache_ttl_seconds=30.0,
            clock=clock,
        )

        first = aggregator.collect()
        second = aggregator.collect()

        assert second is first
        assert adapter.calls == ["src-a"]

    def test_expires(self) -> None:
        """After the TTL every source runs again."""
        clock = FakeClock()
        aggregator, adapter = build_aggregator(
            {"src-a": returns(item_for("src-a", 1))},
            cache_ttl_seconds=30.0,
            clock=clock,
        )

        aggregator.collect()
        clock.advance(30.0)
        aggregator.collect()

        assert adapter.calls == ["src-a", "src-a"]

    def test_total_failure_not_cached(self) -> None:
        """A run where nothing succeeded is retried on the next call."""
        aggregator, adapter = build_aggregator(
            {"src-a": fails()}, cache_ttl_seconds=30.0, clock=FakeClock()
        )

        aggregator.collect()
        aggregator.collect()

        assert adapter.calls == ["src-a", "src-a"]

    def test_invalidate(self) -> None:
        """invalidate_cache() forces a fresh run."""
        aggregator, adapter = build_aggregator(
            {"src-a": returns(item_for("src-a", 1))},
            cache_ttl_seconds=30.0,
            clock=FakeClock(),
        )

        aggregator.collect()
        aggregator.invalidate_cache()
        aggregator.collect()

        assert len(adapter.calls) == 2


class TestAggregate:
    """Filtering, ordering and pagination through aggregate()."""

    @pytest.fixture
    def aggregator(self) -> NewsAggregator:
        items = [
            item_for("src-a", n, published_at=FIXED_NOW - timedelta(hours=n))
            for n in range(1, 6)
        ]
        undated = item_for("src-b", 1, published_at=None, source=NewsSource.FDA)
        aggregator, _ = build_aggregator(
            {"src-a": returns(*items), "src-b": returns(undated)}
        )
        return aggregator

    def test_newest_first_with_total(self, aggregator: NewsAggregator) -> None:
        """Pages are sorted newest first and total counts every match."""
        response = aggregator.aggregate(NewsFilter(page=1, page_size=2))

        assert response.total == 6
        assert [i.title for i in response.items] == [
            "src-a story 1",
            "src-a story 2",
        ]

    def test_last_page_holds_undated(self, aggregator: NewsAggregator) -> None:
        """Undated items sort after every dated item."""
        response = aggregator.aggregate(NewsFilter(page=3, page_size=2))

        assert [i.title for i in response.items] == [
            "src-a story 5",
            "src-b story 1",
        ]

    def test_filter_applies_before_pagination(
        self, aggregator: NewsAggregator
    ) -> None:
        """total reflects the filtered set."""
        response = aggregator.aggregate(
            NewsFilter(sources=(NewsSource.FDA,), page_size=1)
        )

        assert response.total == 1
        assert response.items[0].source == NewsSource.FDA


class TestMetrics:
    """Aggregator metrics."""

    def test_records_items_and_failures(self) -> None:
        """Per-source items and failures are counted."""
        aggregator, _ = build_aggregator(
            {
                "good": returns(item_for("good", 1), item_for("good", 2)),
                "bad": fails(AdapterErrorClass.PARSE),
            }
        )

        aggregator.collect()
        data = aggregator.metrics.to_dict()

        assert data["total_runs"] == 1
        assert data["items_by_source"] == {"good": 2}
        assert data["failures_by_source_error"] == {"bad:PARSE": 1}
        assert aggregator.metrics.get_items_total() == 2
