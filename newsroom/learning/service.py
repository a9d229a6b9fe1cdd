"""Learning service layer - facade between API routes and the learning components.

Owns one counter store and wires it into both recorders and the suggestion
improver, so every component sees the same learned state.
"""

from __future__ import annotations

from collections.abc import Sequence

from newsroom.config import API_LIST_LIMIT_DEFAULT, API_LIST_LIMIT_MAX
from newsroom.exceptions import NotFoundError, ValidationError
from newsroom.learning.metrics import MetricsAggregator
from newsroom.learning.models import (
    Correction,
    Feedback,
    FeedbackPolarity,
    LearningMetrics,
    LearningStats,
    TagAccuracyCounter,
)
from newsroom.learning.policy import LearningPolicy, load_policy
from newsroom.learning.recorder import CorrectionRecorder, FeedbackRecorder
from newsroom.learning.repository import (
    CorrectionLog,
    FeedbackLog,
    TagCounterStore,
    storage_errors,
)
from newsroom.learning.suggestions import SuggestionImprover
from newsroom.observability.logging import get_logger

logger = get_logger(__name__)


class LearningService:
    def __init__(
        self,
        policy: LearningPolicy | None = None,
        corrections: CorrectionLog | None = None,
        feedback: FeedbackLog | None = None,
        counters: TagCounterStore | None = None,
    ) -> None:
        self.policy = policy or load_policy()
        self.counters = counters or TagCounterStore()
        correction_log = corrections or CorrectionLog()
        feedback_log = feedback or FeedbackLog()

        self.correction_recorder = CorrectionRecorder(correction_log, self.counters)
        self.feedback_recorder = FeedbackRecorder(feedback_log, self.counters)
        self.improver = SuggestionImprover(self.counters, self.policy)
        self.aggregator = MetricsAggregator(
            correction_log, feedback_log, self.policy.most_corrected_limit
        )
        logger.info(
            "Learning service ready (threshold=%.2f, min_observations=%d)",
            self.policy.reliability_threshold,
            self.policy.min_observations,
        )

    def record_correction(
        self,
        message_id: str | None,
        original_tags: Sequence[str] | None,
        corrected_tags: Sequence[str] | None,
        user_id: str | None = None,
    ) -> Correction:
        return self.correction_recorder.record(message_id, original_tags, corrected_tags, user_id)

    def record_feedback(
        self,
        message_id: str | None,
        tags: Sequence[str] | None,
        feedback: str | FeedbackPolarity | None,
        user_id: str | None = None,
    ) -> Feedback:
        return self.feedback_recorder.record(message_id, tags, feedback, user_id)

    def improve_suggestions(
        self,
        message_text: str,
        channel_name: str,
        original_suggestions: Sequence[str],
    ) -> list[str]:
        return self.improver.improve(message_text, channel_name, original_suggestions)

    def get_stats(self) -> LearningStats:
        return self.aggregator.stats()

    def get_metrics(self) -> LearningMetrics:
        return self.aggregator.metrics()

    def get_recent_corrections(self, limit: int = API_LIST_LIMIT_DEFAULT) -> list[Correction]:
        if limit < 1 or limit > API_LIST_LIMIT_MAX:
            raise ValidationError(f"limit must be between 1 and {API_LIST_LIMIT_MAX}")
        return self.aggregator.recent_corrections(limit)

    def get_tag_counter(self, tag: str) -> TagAccuracyCounter:
        with storage_errors("load tag counter"):
            found = self.counters.get(tag)
        if found is None:
            raise NotFoundError(f"Tag '{tag}' has no learning history")
        return found

    def list_tag_counters(self) -> list[TagAccuracyCounter]:
        with storage_errors("list tag counters"):
            return self.counters.list_all()
