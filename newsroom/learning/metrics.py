"""
Learning metrics derived from the correction and feedback logs.

Stats are recomputed from the logs on each read rather than kept as a running
total, so they always agree with the log contents.
"""

from __future__ import annotations

from collections import Counter

from newsroom.learning.models import (
    Correction,
    CorrectedTag,
    FeedbackPolarity,
    FeedbackStats,
    LearningMetrics,
    LearningStats,
)
from newsroom.learning.repository import CorrectionLog, FeedbackLog, storage_errors


def stats_from_corrections(corrections: list[Correction]) -> LearningStats:
    accurate = sum(1 for c in corrections if c.is_exact_match)
    return LearningStats.from_counts(total=len(corrections), accurate=accurate)


def most_corrected_tags(corrections: list[Correction], limit: int = 10) -> list[CorrectedTag]:
    """Tags most often removed by editors, highest count first, then by name."""
    removed: Counter[str] = Counter()
    for correction in corrections:
        removed.update(correction.removed_tags)
    ordered = sorted(removed.items(), key=lambda item: (-item[1], item[0]))
    return [CorrectedTag(tag=tag, corrections=n) for tag, n in ordered[:limit]]


class MetricsAggregator:
    def __init__(
        self,
        corrections: CorrectionLog,
        feedback: FeedbackLog,
        most_corrected_limit: int = 10,
    ) -> None:
        self.corrections = corrections
        self.feedback = feedback
        self.most_corrected_limit = most_corrected_limit

    def stats(self) -> LearningStats:
        with storage_errors("compute learning stats"):
            return stats_from_corrections(self.corrections.scan())

    def metrics(self) -> LearningMetrics:
        """
        LearningStats plus most-corrected tags and feedback counts.

        Side Effects:
            - Reads tag_corrections and tag_feedback
        """
        with storage_errors("compute learning metrics"):
            corrections = self.corrections.scan()
            by_polarity = self.feedback.count_by_polarity()

        stats = stats_from_corrections(corrections)
        return LearningMetrics(
            total_predictions=stats.total_predictions,
            accurate_predictions=stats.accurate_predictions,
            accuracy=stats.accuracy,
            most_corrected_tags=most_corrected_tags(corrections, self.most_corrected_limit),
            feedback_stats=FeedbackStats(
                positive=by_polarity[FeedbackPolarity.POSITIVE],
                negative=by_polarity[FeedbackPolarity.NEGATIVE],
                corrections=stats.total_predictions,
            ),
        )

    def recent_corrections(self, limit: int = 50) -> list[Correction]:
        with storage_errors("load recent corrections"):
            return self.corrections.recent(limit)
