"""Metrics for aggregation runs."""

from collections import Counter
from dataclasses import dataclass, field
from threading import Lock

from clinical_news.adapters.errors import AdapterErrorClass


@dataclass
class AggregationMetrics:
    """Thread-safe counters for one aggregator.

    Owned by a NewsAggregator instance; worker threads record into it
    concurrently.
    """

    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    items_by_source: Counter[str] = field(default_factory=Counter)
    failures_by_source_error: Counter[tuple[str, str]] = field(default_factory=Counter)
    duration_by_source: dict[str, float] = field(default_factory=dict)
    fallbacks_by_source: Counter[str] = field(default_factory=Counter)
    timeouts_by_source: Counter[str] = field(default_factory=Counter)

    total_items: int = 0
    total_failures: int = 0
    total_runs: int = 0
    duplicates_dropped: int = 0

    def record_items(self, source_id: str, count: int) -> None:
        """Record items emitted by a source."""
        with self._lock:
            self.items_by_source[source_id] += count
            self.total_items += count

    def record_failure(self, source_id: str, error_class: AdapterErrorClass) -> None:
        """Record a source failure."""
        with self._lock:
            self.failures_by_source_error[(source_id, error_class.value)] += 1
            self.total_failures += 1

    def record_timeout(self, source_id: str) -> None:
        """Record a source abandoned at its deadline."""
        with self._lock:
            self.timeouts_by_source[source_id] += 1
            key = (source_id, AdapterErrorClass.TIMEOUT.value)
            self.failures_by_source_error[key] += 1
            self.total_failures += 1

    def record_fallback(self, source_id: str) -> None:
        """Record a run that used the fallback strategy."""
        with self._lock:
            self.fallbacks_by_source[source_id] += 1

    def record_duration(self, source_id: str, duration_ms: float) -> None:
        """Record the latest run duration for a source."""
        with self._lock:
            self.duration_by_source[source_id] = duration_ms

    def record_run(self, duplicates_dropped: int) -> None:
        """Record a completed aggregation run."""
        with self._lock:
            self.total_runs += 1
            self.duplicates_dropped += duplicates_dropped

    def get_items_total(self, source_id: str | None = None) -> int:
        """Get total items emitted, optionally for one source."""
        with self._lock:
            if source_id is None:
                return self.total_items
            return self.items_by_source[source_id]

    def get_failures_total(self, source_id: str | None = None) -> int:
        """Get total failures, optionally for one source."""
        with self._lock:
            if source_id is None:
                return self.total_failures
            return sum(
                count
                for (sid, _), count in self.failures_by_source_error.items()
                if sid == source_id
            )

    def to_dict(self) -> dict[str, object]:
        """Export metrics as a JSON-serializable dictionary."""
        with self._lock:
            return {
                "total_runs": self.total_runs,
                "total_items": self.total_items,
                "total_failures": self.total_failures,
                "duplicates_dropped": self.duplicates_dropped,
                "items_by_source": dict(self.items_by_source),
                "failures_by_source_error": {
                    f"{sid}:{error_class}": count
                    for (sid, error_class), count in (
                        self.failures_by_source_error.items()
                    )
                },
                "fallbacks_by_source": dict(self.fallbacks_by_source),
                "timeouts_by_source": dict(self.timeouts_by_source),
                "duration_by_source": {
                    sid: round(ms, 2) for sid, ms in self.duration_by_source.items()
                },
            }
