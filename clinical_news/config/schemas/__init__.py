"""Configuration schema definitions."""

from clinical_news.config.schemas.base import SourceMethod
from clinical_news.config.schemas.ranking import (
    RankingConfig,
    RecencyStep,
    ScoringConfig,
    ThresholdConfig,
)
from clinical_news.config.schemas.sources import SourceConfig, SourcesConfig


__all__ = [
    "RankingConfig",
    "RecencyStep",
    "ScoringConfig",
    "SourceConfig",
    "SourceMethod",
    "SourcesConfig",
    "ThresholdConfig",
]
