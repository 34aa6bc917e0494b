"""Ranking configuration schema (scoring weights and threshold breakpoints)."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RecencyStep(BaseModel):
    """Recency bonus factor for items at most max_days old."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_days: Annotated[int, Field(ge=0)]
    factor: Annotated[float, Field(ge=0.0, le=1.0)]


def _default_recency_steps() -> list[RecencyStep]:
    return [
        RecencyStep(max_days=1, factor=1.0),
        RecencyStep(max_days=3, factor=0.8),
        RecencyStep(max_days=7, factor=0.5),
        RecencyStep(max_days=14, factor=0.3),
    ]


class ScoringConfig(BaseModel):
    """Relevance scoring weights.

    Attributes:
        therapeutic_area_weight: Weight for therapeutic-area matches.
        phase_weight: Weight for trial-phase matches.
        status_weight: Weight for study-status matches.
        category_weight: Base for the approval and safety category bonuses.
        source_weight: Bonus when the source is preferred for a preference.
        recency_weight: Maximum recency bonus.
        title_multiplier: Multiplier for keyword groups matched in the title.
        exact_match_bonus: Extra bonus for an exact therapeutic-area tag.
        area_keyword_factor: Fraction of the area weight for keyword matches.
        drug_class_factor: Fraction of the area weight for drug-class matches.
        phase_keyword_factor: Fraction of the phase weight for keyword matches.
        status_keyword_factor: Fraction of the status weight for keyword matches.
        approval_bonus_multiplier: Category multiplier for drug approvals.
        safety_bonus_multiplier: Category multiplier for relevant safety alerts.
        read_penalty: Amount subtracted for already-read items.
        recency_steps: Ascending day breakpoints for the recency bonus.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    therapeutic_area_weight: Annotated[float, Field(ge=0.0)] = 35.0
    phase_weight: Annotated[float, Field(ge=0.0)] = 25.0
    status_weight: Annotated[float, Field(ge=0.0)] = 20.0
    category_weight: Annotated[float, Field(ge=0.0)] = 10.0
    source_weight: Annotated[float, Field(ge=0.0)] = 8.0
    recency_weight: Annotated[float, Field(ge=0.0)] = 15.0
    title_multiplier: Annotated[float, Field(ge=1.0, le=5.0)] = 1.5
    exact_match_bonus: Annotated[float, Field(ge=0.0)] = 10.0
    area_keyword_factor: Annotated[float, Field(ge=0.0, le=1.0)] = 0.7
    drug_class_factor: Annotated[float, Field(ge=0.0, le=1.0)] = 0.5
    phase_keyword_factor: Annotated[float, Field(ge=0.0, le=1.0)] = 0.6
    status_keyword_factor: Annotated[float, Field(ge=0.0, le=1.0)] = 0.6
    approval_bonus_multiplier: Annotated[float, Field(ge=0.0)] = 2.0
    safety_bonus_multiplier: Annotated[float, Field(ge=0.0)] = 3.0
    read_penalty: Annotated[float, Field(ge=0.0)] = 10.0
    recency_steps: list[RecencyStep] = Field(default_factory=_default_recency_steps)

    @model_validator(mode="after")
    def validate_recency_steps_ascending(self) -> "ScoringConfig":
        """Ensure recency breakpoints ascend by day and descend by factor."""
        days = [step.max_days for step in self.recency_steps]
        factors = [step.factor for step in self.recency_steps]
        if days != sorted(days) or len(set(days)) != len(days):
            msg = "recency_steps max_days must be strictly ascending"
            raise ValueError(msg)
        if factors != sorted(factors, reverse=True):
            msg = "recency_steps factors must not increase with age"
            raise ValueError(msg)
        return self


class ThresholdConfig(BaseModel):
    """Breakpoints for the adaptive "highly recommended" threshold.

    Attributes:
        min_scores_for_percentile: Below this many scores use max_fraction.
        top_fraction: Share of scores that sit at or above the cutoff.
        max_fraction: Fraction of the maximum score for small sets.
        floor: Absolute minimum threshold.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    min_scores_for_percentile: Annotated[int, Field(ge=1)] = 5
    top_fraction: Annotated[float, Field(gt=0.0, le=1.0)] = 0.2
    max_fraction: Annotated[float, Field(gt=0.0, le=1.0)] = 0.85
    floor: Annotated[float, Field(ge=0.0)] = 40.0


class RankingConfig(BaseModel):
    """Root configuration for ranking.yaml."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: Annotated[str, Field(pattern=r"^\d+\.\d+$")] = "1.0"
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    threshold: ThresholdConfig = Field(default_factory=ThresholdConfig)
