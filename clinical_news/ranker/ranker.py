"""Ranking of classified items, chronologically or by relevance."""

import time
from collections.abc import Sequence
from datetime import datetime

import structlog

from clinical_news.aggregator.filters import (
    published_sort_key,
    sort_by_published_desc,
)
from clinical_news.config.schemas.ranking import RankingConfig
from clinical_news.models import NewsItem, PreferenceProfile
from clinical_news.ranker.models import (
    RankedEntry,
    RankedResult,
    RankingMode,
    ScoredItem,
)
from clinical_news.ranker.scorer import RelevanceScorer
from clinical_news.ranker.threshold import compute_threshold


logger = structlog.get_logger()


class Ranker:
    """Orders items and flags the highly recommended ones.

    Chronological mode sorts newest first. Relevance mode scores every item
    against a profile, drops items scoring zero, and sorts by score with
    newer items first among equal scores. The highly-recommended flag never
    changes the order.
    """

    def __init__(
        self,
        config: RankingConfig | None = None,
        scorer: RelevanceScorer | None = None,
        request_id: str = "",
    ) -> None:
        """Initialize the ranker.

        Args:
            config: Scoring weights and threshold breakpoints.
            scorer: Scorer to use (built from config when omitted).
            request_id: Request identifier for logging.
        """
        self._config = config or RankingConfig()
        self._scorer = scorer or RelevanceScorer(self._config.scoring)
        self._log = logger.bind(component="ranker", request_id=request_id)

    @property
    def scorer(self) -> RelevanceScorer:
        """Scorer in use."""
        return self._scorer

    def rank(
        self,
        items: Sequence[NewsItem],
        profile: PreferenceProfile | None = None,
        mode: RankingMode | None = None,
        now: datetime | None = None,
    ) -> RankedResult:
        """Rank items.

        Args:
            items: Classified items, in insertion order.
            profile: Preference profile; required for relevance mode.
            mode: Ranking mode (relevance when a profile is given, else
                chronological).
            now: Reference time for recency scoring.

        Returns:
            RankedResult with entries in ranked order.

        Raises:
            ValueError: If relevance mode is requested without a profile.
        """
        if mode is None:
            mode = RankingMode.RELEVANCE if profile else RankingMode.CHRONOLOGICAL
        if mode == RankingMode.RELEVANCE and profile is None:
            msg = "Relevance ranking requires a preference profile"
            raise ValueError(msg)

        start = time.perf_counter()
        if profile is None:
            result = RankedResult(
                entries=[RankedEntry(item=i) for i in sort_by_published_desc(items)],
                mode=mode,
            )
        else:
            scored = [self._scorer.score(item, profile, now) for item in items]
            if mode == RankingMode.RELEVANCE:
                scored = self._order_by_relevance(scored)
            else:
                scored = sorted(
                    scored, key=lambda s: published_sort_key(s.item), reverse=True
                )
            result = self._flag(scored, mode)

        self._log.info(
            "ranking_complete",
            mode=mode.value,
            items_in=len(items),
            items_out=len(result.entries),
            recommended=result.recommended_count,
            threshold=result.recommended_threshold,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return result

    @staticmethod
    def _order_by_relevance(scored: list[ScoredItem]) -> list[ScoredItem]:
        kept = [s for s in scored if s.score > 0]
        # Stable sorts: equal scores keep newest-first order.
        kept.sort(key=lambda s: published_sort_key(s.item), reverse=True)
        kept.sort(key=lambda s: s.score, reverse=True)
        return kept

    def _flag(self, scored: list[ScoredItem], mode: RankingMode) -> RankedResult:
        threshold = compute_threshold(
            (s.score for s in scored if s.score > 0), self._config.threshold
        )
        entries = [
            RankedEntry(
                item=s.item,
                score=s.score,
                breakdown=s.breakdown,
                highly_recommended=s.score >= threshold,
            )
            for s in scored
        ]
        return RankedResult(entries=entries, recommended_threshold=threshold, mode=mode)
