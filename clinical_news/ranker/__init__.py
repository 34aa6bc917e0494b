"""Relevance scoring, adaptive thresholding and ranking."""

from clinical_news.ranker.keyword_matcher import (
    KeywordGroup,
    KeywordHit,
    KeywordMatcher,
)
from clinical_news.ranker.models import (
    RankedEntry,
    RankedResult,
    RankingMode,
    ScoreBreakdown,
    ScoredItem,
)
from clinical_news.ranker.ranker import Ranker
from clinical_news.ranker.scorer import (
    RelevanceScorer,
    calculate_news_relevance_score,
    filter_and_score,
    resolve_area_key,
)
from clinical_news.ranker.threshold import compute_threshold


__all__ = [
    "KeywordGroup",
    "KeywordHit",
    "KeywordMatcher",
    "RankedEntry",
    "RankedResult",
    "RankingMode",
    "Ranker",
    "RelevanceScorer",
    "ScoreBreakdown",
    "ScoredItem",
    "calculate_news_relevance_score",
    "compute_threshold",
    "filter_and_score",
    "resolve_area_key",
]
