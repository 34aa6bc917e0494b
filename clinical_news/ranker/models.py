"""Data models for relevance scoring and ranking."""

from dataclasses import dataclass, field
from enum import Enum

from clinical_news.models import NewsItem


class RankingMode(str, Enum):
    """How a ranked list is ordered."""

    CHRONOLOGICAL = "chronological"
    RELEVANCE = "relevance"


@dataclass(frozen=True)
class ScoreBreakdown:
    """Breakdown of an item's relevance score into factors.

    Attributes:
        therapeutic_area: Contribution from therapeutic-area matches.
        phase: Contribution from trial-phase matches.
        status: Contribution from study-status matches.
        drug_approval: Approval bonus for late-stage phase interest.
        safety_alert: Bonus for topically relevant safety alerts.
        recency: Contribution from publication recency.
        read_penalty: Negative adjustment for already-read items.
    """

    therapeutic_area: float = 0.0
    phase: float = 0.0
    status: float = 0.0
    drug_approval: float = 0.0
    safety_alert: float = 0.0
    recency: float = 0.0
    read_penalty: float = 0.0

    @property
    def raw_total(self) -> float:
        """Sum of all factors before clamping."""
        return (
            self.therapeutic_area
            + self.phase
            + self.status
            + self.drug_approval
            + self.safety_alert
            + self.recency
            + self.read_penalty
        )

    @property
    def total(self) -> float:
        """Final score, never negative."""
        return max(0.0, self.raw_total)

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary for serialization.

        Returns:
            Dictionary of factor name to contribution.
        """
        return {
            "therapeutic_area": self.therapeutic_area,
            "phase": self.phase,
            "status": self.status,
            "drug_approval": self.drug_approval,
            "safety_alert": self.safety_alert,
            "recency": self.recency,
            "read_penalty": self.read_penalty,
            "total": self.total,
        }


@dataclass(frozen=True)
class ScoredItem:
    """An item with its relevance score and breakdown."""

    item: NewsItem
    score: float
    breakdown: ScoreBreakdown


@dataclass(frozen=True)
class RankedEntry:
    """One entry of a ranked list.

    Attributes:
        item: The news item.
        score: Relevance score (None in chronological mode without a profile).
        breakdown: Per-factor contributions, when scored.
        highly_recommended: Score reached the recommendation threshold.
    """

    item: NewsItem
    score: float | None = None
    breakdown: ScoreBreakdown | None = None
    highly_recommended: bool = False

    def to_json_dict(self) -> dict[str, object]:
        """Convert to a JSON-serializable dictionary."""
        data = self.item.to_json_dict()
        data["score"] = round(self.score, 2) if self.score is not None else None
        data["scoreDetails"] = self.breakdown.to_dict() if self.breakdown else None
        data["highlyRecommended"] = self.highly_recommended
        return data


@dataclass(frozen=True)
class RankedResult:
    """Ordered entries plus the threshold used to flag them."""

    entries: list[RankedEntry] = field(default_factory=list)
    recommended_threshold: float | None = None
    mode: RankingMode = RankingMode.CHRONOLOGICAL

    @property
    def items(self) -> list[NewsItem]:
        """Items in ranked order."""
        return [entry.item for entry in self.entries]

    @property
    def recommended_count(self) -> int:
        """Number of entries flagged highly recommended."""
        return sum(1 for entry in self.entries if entry.highly_recommended)
