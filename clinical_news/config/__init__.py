"""Configuration loading and validation."""

from clinical_news.config.loader import ConfigLoader, ConfigValidationError
from clinical_news.config.schemas import (
    RankingConfig,
    ScoringConfig,
    SourceConfig,
    SourceMethod,
    SourcesConfig,
    ThresholdConfig,
)


__all__ = [
    "ConfigLoader",
    "ConfigValidationError",
    "RankingConfig",
    "ScoringConfig",
    "SourceConfig",
    "SourceMethod",
    "SourcesConfig",
    "ThresholdConfig",
]
