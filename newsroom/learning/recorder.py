"""
Records tag corrections and feedback, and keeps the tag counters current.

Each record is appended to its log and the matching counter increments are
applied in the same serialized transaction, so a storage failure leaves
neither the log nor the counters changed.
"""

from __future__ import annotations

import sqlite3
import uuid
from collections.abc import Sequence

from newsroom.exceptions import ValidationError
from newsroom.learning.models import (
    Correction,
    Feedback,
    FeedbackPolarity,
    normalize_tags,
    utcnow,
)
from newsroom.learning.repository import (
    CorrectionLog,
    CounterField,
    FeedbackLog,
    TagCounterStore,
    run_in_write_transaction,
    storage_errors,
)
from newsroom.observability.logging import get_logger
from newsroom.observability.telemetry import counter, log_event

logger = get_logger(__name__)


def _require_message_id(message_id: str | None) -> str:
    if message_id is None or not str(message_id).strip():
        raise ValidationError("messageId is required")
    return str(message_id).strip()


def _require_tag_list(value: Sequence[str] | None, name: str) -> list[str]:
    if value is None or isinstance(value, str) or not isinstance(value, Sequence):
        raise ValidationError(f"{name} must be an array of tags")
    if not all(isinstance(tag, str) for tag in value):
        raise ValidationError(f"{name} must contain only strings")
    return normalize_tags(value)


def _clean_user_id(user_id: str | None) -> str | None:
    if user_id is None:
        return None
    return user_id.strip() or None


class CorrectionRecorder:
    """Turns user tag corrections into log entries and counter updates."""

    def __init__(self, log: CorrectionLog, counters: TagCounterStore) -> None:
        self.log = log
        self.counters = counters

    def record(
        self,
        message_id: str | None,
        original_tags: Sequence[str] | None,
        corrected_tags: Sequence[str] | None,
        user_id: str | None = None,
    ) -> Correction:
        """
        Record a user correction.

        Counter effects per tag:
            in original only  -> suggested, rejected
            in both           -> suggested, confirmed
            in corrected only -> added

        Raises:
            ValidationError: missing messageId or non-array tag fields
            StorageError: the append or counter update failed

        Side Effects:
            - Appends to tag_corrections
            - Upserts rows in tag_accuracy
        """
        correction = Correction(
            id=str(uuid.uuid4()),
            message_id=_require_message_id(message_id),
            original_tags=_require_tag_list(original_tags, "originalTags"),
            corrected_tags=_require_tag_list(corrected_tags, "correctedTags"),
            user_id=_clean_user_id(user_id),
            recorded_at=utcnow(),
        )

        def work(conn: sqlite3.Connection) -> None:
            self.log.append(correction, conn=conn)
            for tag in correction.original_tags:
                self.counters.increment(tag, CounterField.SUGGESTED, conn=conn)
            for tag in correction.removed_tags:
                self.counters.increment(tag, CounterField.REJECTED, conn=conn)
            for tag in correction.confirmed_tags:
                self.counters.increment(tag, CounterField.CONFIRMED, conn=conn)
            for tag in correction.added_tags:
                self.counters.increment(tag, CounterField.ADDED, conn=conn)

        with storage_errors("record tag correction"):
            run_in_write_transaction(work)

        counter("learning.corrections")
        if correction.is_exact_match:
            counter("learning.corrections.exact")
        log_event(
            "learning.correction_recorded",
            correction_id=correction.id,
            removed=len(correction.removed_tags),
            confirmed=len(correction.confirmed_tags),
            added=len(correction.added_tags),
        )
        logger.info(
            "Recorded correction %s for message %s: %s -> %s",
            correction.id,
            correction.message_id,
            correction.original_tags,
            correction.corrected_tags,
        )
        return correction


class FeedbackRecorder:
    """Turns thumbs-up/down feedback into log entries and counter updates."""

    def __init__(self, log: FeedbackLog, counters: TagCounterStore) -> None:
        self.log = log
        self.counters = counters

    def record(
        self,
        message_id: str | None,
        tags: Sequence[str] | None,
        feedback: str | FeedbackPolarity | None,
        user_id: str | None = None,
    ) -> Feedback:
        """
        Record positive or negative feedback on a tag set.

        Raises:
            ValidationError: feedback not 'positive'/'negative', missing messageId or tags
            StorageError: the append or counter update failed
        """
        try:
            polarity = FeedbackPolarity(feedback)
        except ValueError:
            raise ValidationError("feedback must be 'positive' or 'negative'") from None

        entry = Feedback(
            id=str(uuid.uuid4()),
            message_id=_require_message_id(message_id),
            tags=_require_tag_list(tags, "tags"),
            polarity=polarity,
            user_id=_clean_user_id(user_id),
            recorded_at=utcnow(),
        )
        verdict = (
            CounterField.CONFIRMED if polarity is FeedbackPolarity.POSITIVE else CounterField.REJECTED
        )

        def work(conn: sqlite3.Connection) -> None:
            self.log.append(entry, conn=conn)
            for tag in entry.tags:
                self.counters.increment(tag, CounterField.SUGGESTED, conn=conn)
                self.counters.increment(tag, verdict, conn=conn)

        with storage_errors("record tag feedback"):
            run_in_write_transaction(work)

        counter(f"learning.feedback.{polarity.value}")
        log_event(
            "learning.feedback_recorded",
            feedback_id=entry.id,
            polarity=polarity.value,
            tags=len(entry.tags),
        )
        logger.info(
            "Recorded %s feedback %s for message %s on %s",
            polarity.value,
            entry.id,
            entry.message_id,
            entry.tags,
        )
        return entry
