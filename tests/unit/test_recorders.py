"""Unit tests for the correction and feedback recorders"""

from __future__ import annotations

import sqlite3
import threading

import pytest

from newsroom.exceptions import StorageError, ValidationError
from newsroom.learning.models import FeedbackPolarity
from newsroom.learning.repository import CorrectionLog, FeedbackLog, TagCounterStore
from newsroom.observability.telemetry import get_counter


def counters_for(service, tag):
    stats = service.counters.get(tag)
    assert stats is not None, f"no counters for {tag}"
    return (
        stats.times_suggested,
        stats.times_confirmed,
        stats.times_rejected,
        stats.times_added,
    )


class TestCorrectionRecorder:
    def test_counter_effects_per_tag(self, service):
        service.record_correction("msg-1", ["bug", "urgent"], ["bug", "feature"])

        # (suggested, confirmed, rejected, added)
        assert counters_for(service, "bug") == (1, 1, 0, 0)
        assert counters_for(service, "urgent") == (1, 0, 1, 0)
        assert counters_for(service, "feature") == (0, 0, 0, 1)

    def test_returns_stored_record(self, service):
        correction = service.record_correction(
            " msg-1 ", ["bug"], ["bug"], user_id="editor-1"
        )

        assert correction.message_id == "msg-1"
        assert correction.user_id == "editor-1"
        assert correction.is_exact_match
        assert CorrectionLog().scan() == [correction]

    def test_exact_match_only_confirms(self, service):
        service.record_correction("msg-1", ["release", "bug"], ["bug", "release"])

        assert counters_for(service, "release") == (1, 1, 0, 0)
        assert counters_for(service, "bug") == (1, 1, 0, 0)

    def test_duplicate_tags_count_once(self, service):
        service.record_correction("msg-1", ["bug", "bug", " bug"], [])

        assert counters_for(service, "bug") == (1, 0, 1, 0)

    def test_telemetry_counters(self, service):
        service.record_correction("msg-1", ["bug"], ["bug"])
        service.record_correction("msg-2", ["bug"], [])

        assert get_counter("learning.corrections") == 2
        assert get_counter("learning.corrections.exact") == 1

    @pytest.mark.parametrize("message_id", [None, "", "   "])
    def test_missing_message_id(self, service, message_id):
        with pytest.raises(ValidationError, match="messageId is required"):
            service.record_correction(message_id, ["bug"], [])

        assert CorrectionLog().count() == 0

    @pytest.mark.parametrize("tags", [None, "bug", 42, ["bug", 7]])
    def test_tags_must_be_string_arrays(self, service, tags):
        with pytest.raises(ValidationError):
            service.record_correction("msg-1", tags, [])

        assert TagCounterStore().list_all() == []

    def test_storage_failure_leaves_no_trace(self, service, monkeypatch):
        calls = {"n": 0}
        real_increment = TagCounterStore.increment

        def failing_increment(self, tag, field, amount=1, conn=None):
            calls["n"] += 1
            if calls["n"] == 2:
                raise sqlite3.OperationalError("disk I/O error")
            return real_increment(self, tag, field, amount, conn)

        monkeypatch.setattr(TagCounterStore, "increment", failing_increment)

        with pytest.raises(StorageError):
            service.record_correction("msg-1", ["bug", "urgent"], ["bug"])

        assert CorrectionLog().count() == 0
        assert TagCounterStore().list_all() == []

    def test_concurrent_corrections_do_not_lose_updates(self, service):
        errors = []

        def worker(n):
            try:
                for i in range(5):
                    service.record_correction(f"msg-{n}-{i}", ["urgent"], [])
            except Exception as e:  # noqa: BLE001
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert counters_for(service, "urgent") == (40, 0, 40, 0)
        assert CorrectionLog().count() == 40


class TestFeedbackRecorder:
    def test_positive_confirms_every_tag(self, service):
        entry = service.record_feedback("msg-1", ["bug", "release"], "positive")

        assert entry.polarity is FeedbackPolarity.POSITIVE
        assert counters_for(service, "bug") == (1, 1, 0, 0)
        assert counters_for(service, "release") == (1, 1, 0, 0)

    def test_negative_rejects_and_leaves_confirmed_alone(self, service):
        service.record_feedback("msg-1", ["bug"], "positive")
        service.record_feedback("msg-2", ["bug"], FeedbackPolarity.NEGATIVE)

        assert counters_for(service, "bug") == (2, 1, 1, 0)

    def test_appends_to_feedback_log(self, service):
        service.record_feedback("msg-1", ["bug"], "negative", user_id="  ")

        entries = FeedbackLog().scan()
        assert len(entries) == 1
        assert entries[0].user_id is None
        assert get_counter("learning.feedback.negative") == 1

    @pytest.mark.parametrize("feedback", ["maybe", "", None, "POSITIVE"])
    def test_rejects_unknown_feedback(self, service, feedback):
        with pytest.raises(ValidationError, match="positive' or 'negative"):
            service.record_feedback("msg-1", ["bug"], feedback)

        assert FeedbackLog().scan() == []
        assert TagCounterStore().list_all() == []

    def test_requires_tag_array(self, service):
        with pytest.raises(ValidationError, match="tags must be an array"):
            service.record_feedback("msg-1", None, "positive")


class TestLearningScenarios:
    def test_correction_then_positive_feedback(self, service):
        service.record_correction("m1", ["urgent", "bug"], ["bug"])

        assert service.counters.get("urgent").times_rejected == 1
        assert service.counters.get("bug").times_confirmed == 1
        stats = service.get_stats()
        assert (stats.total_predictions, stats.accurate_predictions) == (1, 0)

        service.record_feedback("m2", ["release"], "positive")

        assert service.counters.get("release").times_confirmed == 1

    def test_exact_match_moves_accurate_and_total_together(self, service):
        service.record_correction("m1", ["bug"], [])
        before = service.get_stats()

        service.record_correction("m2", ["bug", "release"], ["release", "bug"])

        after = service.get_stats()
        assert after.total_predictions == before.total_predictions + 1
        assert after.accurate_predictions == before.accurate_predictions + 1
