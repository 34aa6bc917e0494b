"""Multi-factor relevance scoring of news items against a preference profile."""

import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import UTC, datetime, timedelta

from clinical_news.config.schemas.ranking import ScoringConfig
from clinical_news.models import NewsCategory, NewsItem, NewsSource, PreferenceProfile
from clinical_news.ranker.constants import (
    DRUG_CLASS_KEYWORDS,
    LATE_STAGE_PHASES,
    PHASE_ALIASES,
    PHASE_KEYWORDS,
    SOURCE_PREFERENCES,
    STATUS_KEYWORDS,
    THERAPEUTIC_AREA_KEYWORDS,
)
from clinical_news.ranker.keyword_matcher import KeywordGroup, KeywordMatcher
from clinical_news.ranker.models import ScoreBreakdown, ScoredItem
from clinical_news.utils.text import normalize_tag


_ONE_DAY = timedelta(days=1)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _squash(value: str) -> str:
    """Lowercase and drop separators, for loose area-name comparison."""
    return "".join(ch for ch in value.lower() if ch not in "_- \t")


def resolve_area_key(
    area: str,
    keys: Iterable[str] = THERAPEUTIC_AREA_KEYWORDS,
) -> str:
    """Map a profile therapeutic area onto a keyword table key.

    The first key whose squashed form contains, or is contained in, the
    squashed area wins ("Rare Diseases" -> "rare_diseases"). Unknown areas
    resolve to their lowercased name.
    """
    squashed = _squash(area)
    if squashed:
        for key in keys:
            squashed_key = _squash(key)
            if squashed_key in squashed or squashed in squashed_key:
                return key
    return area.strip().lower()


class RelevanceScorer:
    """Computes relevance scores for items against a preference profile.

    Scoring formula:
        score = max(0, area + phase + status + drug_approval
                       + safety_alert + recency - read_penalty)

    Where:
        - area: per profile area, exact tag match (weight + exact bonus),
          area keywords (0.7x), drug-class keywords (0.5x), source affinity
        - phase / status: per profile value, tag match (weight),
          keywords (0.6x), source affinity
        - drug_approval: DRUG_APPROVAL items when the profile wants phase 3/4
        - safety_alert: SAFETY_ALERT items matching a profile area's keywords
        - recency: stepped bonus by whole days since publication
        - read_penalty: items the user already read

    A keyword group found in the title counts title_multiplier times. Each
    keyword group counts once per profile value.
    """

    def __init__(
        self,
        config: ScoringConfig | None = None,
        now_fn: Callable[[], datetime] = _utc_now,
        area_keywords: Mapping[str, Iterable[str]] = THERAPEUTIC_AREA_KEYWORDS,
        drug_class_keywords: Mapping[str, Iterable[str]] = DRUG_CLASS_KEYWORDS,
        phase_keywords: Mapping[str, Iterable[str]] = PHASE_KEYWORDS,
        status_keywords: Mapping[str, Iterable[str]] = STATUS_KEYWORDS,
        source_preferences: Mapping[str, Sequence[NewsSource]] = SOURCE_PREFERENCES,
    ) -> None:
        """Initialize the scorer.

        Args:
            config: Scoring weights.
            now_fn: Clock used for recency when score() gets no explicit now.
            area_keywords: Keyword list per therapeutic area.
            drug_class_keywords: Drug-class keyword list per therapeutic area.
            phase_keywords: Keyword list per trial phase.
            status_keywords: Keyword list per study status.
            source_preferences: Preferred sources per preference value.
        """
        self._config = config or ScoringConfig()
        self._now_fn = now_fn
        self._areas = KeywordMatcher(area_keywords)
        self._drug_classes = KeywordMatcher(drug_class_keywords)
        self._phases = KeywordMatcher(phase_keywords)
        self._statuses = KeywordMatcher(status_keywords)
        self._source_preferences = {
            key: frozenset(sources) for key, sources in source_preferences.items()
        }

        self._phase_keys = {normalize_tag(k): k for k in self._phases.keys}
        for alias, target in PHASE_ALIASES.items():
            self._phase_keys.setdefault(normalize_tag(alias), target)
        self._status_keys = {normalize_tag(k): k for k in self._statuses.keys}

    @property
    def config(self) -> ScoringConfig:
        """Scoring weights in use."""
        return self._config

    def score(
        self,
        item: NewsItem,
        profile: PreferenceProfile,
        now: datetime | None = None,
    ) -> ScoredItem:
        """Score one item.

        Args:
            item: Classified news item.
            profile: The user's preference profile.
            now: Reference time for recency (defaults to the scorer clock).

        Returns:
            ScoredItem with a non-negative score and its breakdown.
        """
        title = item.title
        all_text = item.all_text
        item_tags = {normalize_tag(tag) for tag in item.tags}

        area_keys = [
            resolve_area_key(area, self._areas.keys)
            for area in profile.therapeutic_areas
        ]
        phase_keys = [self._resolve(p, self._phase_keys) for p in profile.phases]
        read_penalty = -self._config.read_penalty if profile.has_read(item.id) else 0.0

        breakdown = ScoreBreakdown(
            therapeutic_area=self._area_score(
                item, profile.therapeutic_areas, area_keys, item_tags, title, all_text
            ),
            phase=self._phase_score(
                item, profile.phases, phase_keys, item_tags, title, all_text
            ),
            status=self._status_score(
                item, profile.statuses, item_tags, title, all_text
            ),
            drug_approval=self._approval_bonus(item, phase_keys),
            safety_alert=self._safety_bonus(item, area_keys, all_text),
            recency=self._recency_score(item, now or self._now_fn()),
            read_penalty=read_penalty,
        )
        return ScoredItem(item=item, score=breakdown.total, breakdown=breakdown)

    @staticmethod
    def _resolve(value: str, keys: Mapping[str, str]) -> str:
        return keys.get(normalize_tag(value), value.strip().upper())

    def _group_score(
        self,
        group: KeywordGroup,
        title: str,
        all_text: str,
        weight: float,
    ) -> float:
        hit = group.match(title, all_text)
        if hit is None:
            return 0.0
        return weight * self._config.title_multiplier if hit.in_title else weight

    def _source_bonus(self, key: str, source: NewsSource) -> float:
        if source in self._source_preferences.get(key, frozenset()):
            return self._config.source_weight
        return 0.0

    def _area_score(  # noqa: PLR0913
        self,
        item: NewsItem,
        areas: Sequence[str],
        area_keys: Sequence[str],
        item_tags: set[str],
        title: str,
        all_text: str,
    ) -> float:
        cfg = self._config
        total = 0.0
        for area, key in zip(areas, area_keys, strict=True):
            if normalize_tag(area) in item_tags or normalize_tag(key) in item_tags:
                total += cfg.therapeutic_area_weight + cfg.exact_match_bonus
            total += self._group_score(
                self._areas.group(key),
                title,
                all_text,
                cfg.therapeutic_area_weight * cfg.area_keyword_factor,
            )
            total += self._group_score(
                self._drug_classes.group(key),
                title,
                all_text,
                cfg.therapeutic_area_weight * cfg.drug_class_factor,
            )
            total += self._source_bonus(key, item.source)
        return total

    def _phase_score(  # noqa: PLR0913
        self,
        item: NewsItem,
        phases: Sequence[str],
        phase_keys: Sequence[str],
        item_tags: set[str],
        title: str,
        all_text: str,
    ) -> float:
        cfg = self._config
        total = 0.0
        for phase, key in zip(phases, phase_keys, strict=True):
            if normalize_tag(phase) in item_tags or normalize_tag(key) in item_tags:
                total += cfg.phase_weight
            total += self._group_score(
                self._phases.group(key),
                title,
                all_text,
                cfg.phase_weight * cfg.phase_keyword_factor,
            )
            total += self._source_bonus(key, item.source)
        return total

    def _status_score(
        self,
        item: NewsItem,
        statuses: Sequence[str],
        item_tags: set[str],
        title: str,
        all_text: str,
    ) -> float:
        cfg = self._config
        total = 0.0
        for status in statuses:
            key = self._resolve(status, self._status_keys)
            if normalize_tag(status) in item_tags:
                total += cfg.status_weight
            total += self._group_score(
                self._statuses.group(key),
                title,
                all_text,
                cfg.status_weight * cfg.status_keyword_factor,
            )
            total += self._source_bonus(key, item.source)
        return total

    def _approval_bonus(self, item: NewsItem, phase_keys: Sequence[str]) -> float:
        if NewsCategory.DRUG_APPROVAL not in item.categories:
            return 0.0
        if not LATE_STAGE_PHASES.intersection(phase_keys):
            return 0.0
        return self._config.category_weight * self._config.approval_bonus_multiplier

    def _safety_bonus(
        self,
        item: NewsItem,
        area_keys: Sequence[str],
        all_text: str,
    ) -> float:
        if NewsCategory.SAFETY_ALERT not in item.categories:
            return 0.0
        # Safety alerts only count when they concern one of the user's areas.
        if not any(self._areas.group(key).search(all_text) for key in area_keys):
            return 0.0
        return self._config.category_weight * self._config.safety_bonus_multiplier

    def _recency_score(self, item: NewsItem, now: datetime) -> float:
        if item.published_at is None:
            return 0.0
        days = max(0, math.floor((now - item.published_at) / _ONE_DAY))
        for step in self._config.recency_steps:
            if days <= step.max_days:
                return self._config.recency_weight * step.factor
        return 0.0


_default_scorer = RelevanceScorer()


def calculate_news_relevance_score(
    item: NewsItem,
    profile: PreferenceProfile,
    now: datetime | None = None,
) -> float:
    """Score an item with the default weights."""
    return _default_scorer.score(item, profile, now).score


def filter_and_score(
    items: Sequence[NewsItem],
    profile: PreferenceProfile,
    min_score: float = 0.0,
    scorer: RelevanceScorer | None = None,
    now: datetime | None = None,
) -> tuple[list[NewsItem], dict[str, float]]:
    """Score every item and keep those above a minimum, best first.

    Args:
        items: Classified items.
        profile: The user's preference profile.
        min_score: Items must score strictly above this to be kept.
        scorer: Scorer to use (defaults to the default weights).
        now: Reference time for recency.

    Returns:
        Tuple of (kept items by descending score, score per item id for
        every input item).
    """
    scorer = scorer or _default_scorer
    scores = {item.id: scorer.score(item, profile, now).score for item in items}
    kept = [item for item in items if scores[item.id] > min_score]
    kept.sort(key=lambda item: scores[item.id], reverse=True)
    return kept, scores
