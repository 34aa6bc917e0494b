"""Result models for aggregation runs."""

from dataclasses import dataclass, field
from datetime import datetime

from clinical_news.adapters.base import AdapterResult
from clinical_news.models import NewsItem, NewsSource


@dataclass(frozen=True)
class SourceRunResult:
    """Result of running the adapter for a single source."""

    source_id: str
    method: str
    source: NewsSource
    result: AdapterResult
    duration_ms: float = 0.0
    timed_out: bool = False

    @property
    def success(self) -> bool:
        """Check if the source contributed a successful result."""
        return self.result.success and not self.timed_out

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "source_id": self.source_id,
            "method": self.method,
            "source": self.source.value,
            "success": self.success,
            "items": self.result.items_count,
            "used_fallback": self.result.used_fallback,
            "timed_out": self.timed_out,
            "duration_ms": round(self.duration_ms, 2),
            "parse_warnings": len(self.result.parse_warnings),
            "error": self.result.error.model_dump(mode="json")
            if self.result.error
            else None,
        }


@dataclass(frozen=True)
class AggregationResult:
    """Merged, deduplicated and classified items from one aggregation run.

    source_results preserves the configured source order.
    """

    request_id: str
    started_at: datetime
    finished_at: datetime
    source_results: list[SourceRunResult] = field(default_factory=list)
    items: list[NewsItem] = field(default_factory=list)
    duplicates_dropped: int = 0
    invalid_dropped: int = 0

    @property
    def sources_succeeded(self) -> int:
        """Number of sources that returned a result in time."""
        return sum(1 for r in self.source_results if r.success)

    @property
    def sources_failed(self) -> int:
        """Number of sources that failed or timed out."""
        return sum(1 for r in self.source_results if not r.success)

    @property
    def duration_ms(self) -> float:
        """Get total duration in milliseconds."""
        return (self.finished_at - self.started_at).total_seconds() * 1000
