"""Adaptive "highly recommended" threshold."""

import math
from collections.abc import Iterable

from clinical_news.config.schemas.ranking import ThresholdConfig


def compute_threshold(
    scores: Iterable[float],
    config: ThresholdConfig | None = None,
) -> float:
    """Compute the score an entry needs to be flagged highly recommended.

    With at least min_scores_for_percentile scores, the cutoff is the score
    at 1-based rank ceil(top_fraction * n) of the descending list, so about
    the top fifth qualifies. Smaller sets use max_fraction of the best
    score. The result never drops below floor, so a list of weak matches
    flags nothing.

    Args:
        scores: Scores of the ranked entries.
        config: Threshold breakpoints.

    Returns:
        The threshold (floor for an empty list).
    """
    config = config or ThresholdConfig()
    ordered = sorted(scores, reverse=True)
    if not ordered:
        return config.floor

    if len(ordered) >= config.min_scores_for_percentile:
        rank = max(1, math.ceil(config.top_fraction * len(ordered)))
        cutoff = ordered[rank - 1]
    else:
        cutoff = ordered[0] * config.max_fraction

    return max(cutoff, config.floor)
