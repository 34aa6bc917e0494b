"""Tests for the NewsService facade and filter validation."""

from datetime import datetime

import pytest

from clinical_news.adapters.base import AdapterResult
from clinical_news.adapters.registry import AdapterRegistry
from clinical_news.aggregator.aggregator import NewsAggregator
from clinical_news.config.schemas.base import SourceMethod
from clinical_news.config.schemas.sources import SourceConfig
from clinical_news.fetch.client import HttpFetcher
from clinical_news.models import NewsFilter, NewsItem, NewsSource
from clinical_news.preferences import InMemoryPreferencesService, PreferenceStore
from clinical_news.service import InvalidFilterError, NewsService, build_filter
from tests.helpers.factories import make_item, make_profile, make_source_config
from tests.helpers.time import FIXED_NOW


class StaticAdapter:
    """Adapter returning the same items for every source."""

    def __init__(self, items: list[NewsItem]) -> None:
        self.items = items
        self.calls = 0

    def fetch(
        self,
        source_config: SourceConfig,  # noqa: ARG002
        http_client: HttpFetcher,  # noqa: ARG002
        now: datetime,  # noqa: ARG002
    ) -> AdapterResult:
        self.calls += 1
        return AdapterResult(items=list(self.items))


def trial_item(title: str, slug: str) -> NewsItem:
    """Item from a trial site, which oncology does not prefer."""
    return make_item(
        title=title,
        url=f"https://trials.example.com/{slug}",
        source=NewsSource.TRIAL_SITE,
        source_id="trial-news",
    )


ONCOLOGY_ITEM = trial_item("New oncology treatment shows tumor response", "onc")
CARDIO_ITEM = trial_item("Heart failure device study", "cardio")
PARKING_ITEM = trial_item("Hospital parking garage reopens", "parking")


def build_service(
    items: list[NewsItem],
    service: InMemoryPreferencesService | None = None,
) -> tuple[NewsService, StaticAdapter]:
    """Build a service over one trial-site source."""
    adapter = StaticAdapter(items)
    aggregator = NewsAggregator(
        sources=[
            make_source_config(
                source_id="trial-news", source=NewsSource.TRIAL_SITE
            )
        ],
        registry=AdapterRegistry({SourceMethod.RSS_FEED: adapter}),
        now_fn=lambda: FIXED_NOW,
    )
    return NewsService(aggregator, PreferenceStore(service)), adapter


class TestBuildFilter:
    """Tests for build_filter."""

    def test_valid_options(self) -> None:
        """Test that string options validate into a filter."""
        news_filter = build_filter(sources=("FDA",), page=2, search_query="  ")

        assert news_filter.sources == (NewsSource.FDA,)
        assert news_filter.page == 2
        assert news_filter.search_query is None

    @pytest.mark.parametrize(
        ("options", "loc"),
        [
            ({"page": 0}, "page"),
            ({"page_size": 0}, "page_size"),
            ({"sources": ("NEWSWIRE",)}, "sources.0"),
        ],
    )
    def test_invalid_field(self, options: dict[str, object], loc: str) -> None:
        """Test that invalid options raise with their location."""
        with pytest.raises(InvalidFilterError) as exc_info:
            build_filter(**options)

        assert loc in [err["loc"] for err in exc_info.value.errors]

    def test_large_page_size_accepted(self) -> None:
        """Test that page size has no upper bound."""
        news_filter = build_filter(page=1, page_size=200)

        assert news_filter.page_size == 200

    def test_inverted_date_range(self) -> None:
        """Test that start after end is rejected at the filter level."""
        with pytest.raises(InvalidFilterError, match="start_date must not be after"):
            build_filter(
                start_date=datetime(2025, 6, 2),
                end_date=datetime(2025, 6, 1),
            )

    def test_is_value_error(self) -> None:
        """Callers may catch InvalidFilterError as ValueError."""
        with pytest.raises(ValueError, match="Invalid filter"):
            build_filter(page=-1)


class TestFetchNews:
    """Tests for NewsService.fetch_news."""

    def test_returns_page(self) -> None:
        """Test that fetch_news pages the merged set."""
        service, _ = build_service([ONCOLOGY_ITEM, CARDIO_ITEM, PARKING_ITEM])

        response = service.fetch_news(NewsFilter(page_size=2), request_id="req-1")

        assert response.total == 3
        assert len(response.items) == 2
        assert response.page_size == 2

    def test_filter_applied(self) -> None:
        """Test that search narrows the result."""
        service, _ = build_service([ONCOLOGY_ITEM, CARDIO_ITEM, PARKING_ITEM])

        response = service.fetch_news(NewsFilter(search_query="PARKING"))

        assert [i.id for i in response.items] == [PARKING_ITEM.id]


class TestFetchRecommended:
    """Tests for NewsService.fetch_recommended."""

    def test_ranks_by_profile(self) -> None:
        """Test that relevant items lead and zero scores are left out."""
        prefs = InMemoryPreferencesService(
            {"u1": make_profile("u1", therapeutic_areas=("oncology",))}
        )
        service, _ = build_service([PARKING_ITEM, CARDIO_ITEM, ONCOLOGY_ITEM], prefs)

        response = service.fetch_recommended("u1", request_id="req-1")

        assert response.user_id == "u1"
        assert [e.item.id for e in response.entries] == [ONCOLOGY_ITEM.id]
        assert response.total == 1
        assert response.entries[0].score is not None
        assert response.entries[0].score > 0
        assert response.entries[0].highly_recommended is True
        assert response.recommended_threshold is not None

    def test_unknown_user_gets_default_profile(self) -> None:
        """Test that a missing profile falls back to the default interests."""
        service, _ = build_service(
            [PARKING_ITEM, ONCOLOGY_ITEM], InMemoryPreferencesService()
        )

        response = service.fetch_recommended("nobody")

        assert response.entries[0].item.id == ONCOLOGY_ITEM.id

    def test_filter_before_ranking(self) -> None:
        """Test that the filter narrows candidates before scoring."""
        prefs = InMemoryPreferencesService(
            {"u1": make_profile("u1", therapeutic_areas=("oncology", "cardiology"))}
        )
        service, _ = build_service([ONCOLOGY_ITEM, CARDIO_ITEM], prefs)

        response = service.fetch_recommended(
            "u1", NewsFilter(search_query="heart")
        )

        assert [e.item.id for e in response.entries] == [CARDIO_ITEM.id]

    def test_json_shape(self) -> None:
        """Test the camelCase response keys."""
        prefs = InMemoryPreferencesService(
            {"u1": make_profile("u1", therapeutic_areas=("oncology",))}
        )
        service, _ = build_service([ONCOLOGY_ITEM], prefs)

        data = service.fetch_recommended("u1").to_json_dict()

        assert data["userId"] == "u1"
        assert data["total"] == 1
        assert data["pageSize"] == 20
        item = data["items"][0]  # type: ignore[index]
        assert item["highlyRecommended"] is True
        assert "therapeutic_area" in item["scoreDetails"]


class TestRecordRead:
    """Tests for NewsService.record_read."""

    def test_marks_and_refreshes_profile(self) -> None:
        """Test that a read mark is visible on the next lookup."""
        prefs = InMemoryPreferencesService({"u1": make_profile("u1")})
        service, _ = build_service([ONCOLOGY_ITEM], prefs)
        service.preference_store.get_profile("u1")

        assert service.record_read("u1", ONCOLOGY_ITEM.id) is True
        assert service.preference_store.get_profile("u1").has_read(ONCOLOGY_ITEM.id)

    def test_read_item_scores_lower(self) -> None:
        """Test that reading an item lowers its score."""
        prefs = InMemoryPreferencesService(
            {"u1": make_profile("u1", therapeutic_areas=("oncology",))}
        )
        service, _ = build_service([ONCOLOGY_ITEM], prefs)
        before = service.fetch_recommended("u1").entries[0].score

        service.record_read("u1", ONCOLOGY_ITEM.id)
        after = service.fetch_recommended("u1").entries[0].score

        assert before is not None
        assert after is not None
        assert after == pytest.approx(before - 10.0)

    def test_without_service(self) -> None:
        """Test that read marks fail when no service is configured."""
        service, _ = build_service([ONCOLOGY_ITEM])

        assert service.record_read("u1", ONCOLOGY_ITEM.id) is False
