"""Public entry points for fetching and recommending clinical news."""

import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from clinical_news.adapters.registry import AdapterRegistry, build_default_registry
from clinical_news.aggregator.aggregator import NewsAggregator
from clinical_news.aggregator.filters import apply_filter, paginate
from clinical_news.config.loader import ConfigLoader
from clinical_news.config.schemas.ranking import RankingConfig
from clinical_news.config.schemas.sources import SourcesConfig
from clinical_news.fetch.config import FetchConfig
from clinical_news.models import NewsFilter, NewsResponse
from clinical_news.observability.logging import request_context
from clinical_news.preferences.service import HttpPreferencesService
from clinical_news.preferences.store import PreferenceStore
from clinical_news.ranker.models import RankedEntry, RankingMode
from clinical_news.ranker.ranker import Ranker
from clinical_news.ranker.scorer import RelevanceScorer
from clinical_news.settings import AppSettings


logger = structlog.get_logger()


class InvalidFilterError(ValueError):
    """Raised when caller-supplied filter options are invalid."""

    def __init__(self, errors: list[dict[str, str]]) -> None:
        """Initialize the error.

        Args:
            errors: Validation error details (loc, msg, type).
        """
        self.errors = errors
        details = "; ".join(f"{e['loc']}: {e['msg']}" for e in errors)
        super().__init__(f"Invalid filter: {details}")

    @classmethod
    def from_validation_error(cls, error: ValidationError) -> "InvalidFilterError":
        """Build from a pydantic ValidationError."""
        return cls(
            [
                {
                    "loc": ".".join(str(loc) for loc in err["loc"]) or "filter",
                    "msg": err["msg"],
                    "type": err["type"],
                }
                for err in error.errors()
            ]
        )


def build_filter(**kwargs: Any) -> NewsFilter:
    """Validate raw filter options.

    Raises:
        InvalidFilterError: If any option is invalid.
    """
    try:
        return NewsFilter.model_validate(kwargs)
    except ValidationError as e:
        raise InvalidFilterError.from_validation_error(e) from e


@dataclass(frozen=True)
class RecommendedResponse:
    """A page of relevance-ranked entries for one user."""

    user_id: str
    entries: list[RankedEntry] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 20
    recommended_threshold: float | None = None

    def to_json_dict(self) -> dict[str, object]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "userId": self.user_id,
            "items": [entry.to_json_dict() for entry in self.entries],
            "total": self.total,
            "page": self.page,
            "pageSize": self.page_size,
            "recommendedThreshold": self.recommended_threshold,
        }


class NewsService:
    """Facade over aggregation, preferences and ranking.

    One instance is built per process; its caches live as long as it does.
    """

    def __init__(
        self,
        aggregator: NewsAggregator,
        preference_store: PreferenceStore,
        ranking_config: RankingConfig | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            aggregator: Aggregator over the configured sources.
            preference_store: Cached access to preference profiles.
            ranking_config: Scoring weights and threshold breakpoints.
        """
        self._aggregator = aggregator
        self._preference_store = preference_store
        self._ranking_config = ranking_config or RankingConfig()
        self._scorer = RelevanceScorer(self._ranking_config.scoring)

    @classmethod
    def from_config(  # noqa: PLR0913
        cls,
        settings: AppSettings,
        sources_config: SourcesConfig,
        ranking_config: RankingConfig | None = None,
        registry: AdapterRegistry | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> "NewsService":
        """Build a service from settings and loaded configuration.

        Args:
            settings: Application settings.
            sources_config: Validated source catalogue.
            ranking_config: Validated ranking configuration.
            registry: Adapter registry (built from settings when omitted).
            transport: Optional httpx transport for every HTTP client.

        Returns:
            A ready NewsService.
        """
        aggregator = NewsAggregator(
            sources=sources_config.sources,
            registry=registry or build_default_registry(settings),
            fetch_config=FetchConfig(user_agent=settings.http_user_agent),
            cache_ttl_seconds=settings.aggregation_cache_ttl_seconds,
            transport=transport,
        )
        preferences_service = (
            HttpPreferencesService(
                settings.preferences_api_url,
                user_agent=settings.http_user_agent,
                transport=transport,
            )
            if settings.preferences_api_url
            else None
        )
        store = PreferenceStore(
            preferences_service,
            ttl_seconds=settings.preferences_cache_ttl_seconds,
        )
        return cls(aggregator, store, ranking_config)

    @classmethod
    def from_files(
        cls,
        settings: AppSettings,
        sources_path: Path,
        ranking_path: Path | None = None,
    ) -> "NewsService":
        """Build a service from configuration files.

        Raises:
            ConfigValidationError: If a configuration file is invalid.
        """
        loader = ConfigLoader()
        return cls.from_config(
            settings,
            loader.load_sources(sources_path),
            loader.load_ranking(ranking_path),
        )

    @property
    def aggregator(self) -> NewsAggregator:
        """Underlying aggregator."""
        return self._aggregator

    @property
    def preference_store(self) -> PreferenceStore:
        """Underlying preference store."""
        return self._preference_store

    def fetch_news(
        self,
        news_filter: NewsFilter | None = None,
        request_id: str | None = None,
    ) -> NewsResponse:
        """Fetch one page of news, newest first.

        Never fails because of upstream sources; total failure yields an
        empty page.
        """
        request_id = request_id or uuid.uuid4().hex[:12]
        with request_context(request_id):
            return self._aggregator.aggregate(news_filter, request_id=request_id)

    def fetch_recommended(
        self,
        user_id: str,
        news_filter: NewsFilter | None = None,
        request_id: str | None = None,
    ) -> RecommendedResponse:
        """Fetch one page of news ranked by relevance to a user.

        Items scoring zero are left out. Entries at or above the adaptive
        threshold are flagged highly recommended.
        """
        news_filter = news_filter or NewsFilter()
        request_id = request_id or uuid.uuid4().hex[:12]
        with request_context(request_id, user_id):
            collected = self._aggregator.collect(request_id)
            candidates = apply_filter(collected.items, news_filter)
            profile = self._preference_store.get_profile(user_id)

            ranker = Ranker(
                self._ranking_config, scorer=self._scorer, request_id=request_id
            )
            ranked = ranker.rank(candidates, profile, RankingMode.RELEVANCE)
            page = paginate(ranked.entries, news_filter.page, news_filter.page_size)

            logger.bind(component="service", request_id=request_id).info(
                "recommendations_served",
                candidates=len(candidates),
                ranked=len(ranked.entries),
                recommended=ranked.recommended_count,
                page=news_filter.page,
            )
            return RecommendedResponse(
                user_id=user_id,
                entries=page,
                total=len(ranked.entries),
                page=news_filter.page,
                page_size=news_filter.page_size,
                recommended_threshold=ranked.recommended_threshold,
            )

    def record_read(self, user_id: str, article_id: str) -> bool:
        """Mark an article as read for a user."""
        return self._preference_store.record_read_article(user_id, article_id)
