"""
Newsroom learning module - tag corrections, feedback, and suggestion ranking.
"""

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
from newsroom.learning.repository import CorrectionLog, FeedbackLog, TagCounterStore
from newsroom.learning.service import LearningService
from newsroom.learning.suggestions import SuggestionImprover

__all__ = [
    # Models
    "Correction",
    "Feedback",
    "FeedbackPolarity",
    "LearningMetrics",
    "LearningStats",
    "TagAccuracyCounter",
    # Storage
    "CorrectionLog",
    "FeedbackLog",
    "TagCounterStore",
    # Components
    "CorrectionRecorder",
    "FeedbackRecorder",
    "MetricsAggregator",
    "SuggestionImprover",
    "LearningPolicy",
    "load_policy",
    # Facade
    "LearningService",
]
