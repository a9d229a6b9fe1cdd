"""Unit tests for learning metrics aggregation"""

from __future__ import annotations

import pytest

from newsroom.exceptions import NotFoundError, ValidationError
from newsroom.learning.metrics import most_corrected_tags, stats_from_corrections
from newsroom.learning.models import Correction


def make(n, original, corrected):
    return Correction(
        id=f"c-{n}", message_id=f"m-{n}", original_tags=original, corrected_tags=corrected
    )


class TestStatsFromCorrections:
    def test_empty_log(self):
        stats = stats_from_corrections([])

        assert stats.total_predictions == 0
        assert stats.accuracy == 0.0

    def test_counts_exact_matches(self):
        corrections = [make(1, ["a"], ["a"]), make(2, ["a"], []), make(3, ["a", "b"], ["b", "a"])]

        stats = stats_from_corrections(corrections)

        assert stats.total_predictions == 3
        assert stats.accurate_predictions == 2


class TestMostCorrectedTags:
    def test_orders_by_count_then_name(self):
        corrections = [
            make(1, ["urgent", "bug"], []),
            make(2, ["urgent", "release"], ["release"]),
            make(3, ["bug"], ["feature"]),
            make(4, ["alpha"], []),
        ]

        result = most_corrected_tags(corrections)

        assert [(t.tag, t.corrections) for t in result] == [
            ("bug", 2),
            ("urgent", 2),
            ("alpha", 1),
        ]

    def test_respects_limit(self):
        corrections = [make(n, [f"tag-{n:02d}"], []) for n in range(15)]

        assert len(most_corrected_tags(corrections, limit=10)) == 10

    def test_added_tags_are_not_corrections(self):
        assert most_corrected_tags([make(1, [], ["feature"])]) == []


class TestMetricsAggregator:
    def test_accuracy_after_ten_corrections(self, service):
        for n in range(6):
            service.record_correction(f"exact-{n}", ["bug"], ["bug"])
        for n in range(4):
            service.record_correction(f"fixed-{n}", ["bug"], ["release"])

        stats = service.get_stats()

        assert stats.total_predictions == 10
        assert stats.accurate_predictions == 6
        assert stats.accuracy == pytest.approx(0.6)

    def test_metrics_include_feedback_and_corrections(self, service):
        service.record_correction("m-1", ["urgent"], [])
        service.record_feedback("m-2", ["bug"], "positive")
        service.record_feedback("m-3", ["bug"], "positive")
        service.record_feedback("m-4", ["bug"], "negative")

        metrics = service.get_metrics()

        assert metrics.total_predictions == 1
        assert metrics.accuracy == 0.0
        assert metrics.feedback_stats.positive == 2
        assert metrics.feedback_stats.negative == 1
        assert metrics.feedback_stats.corrections == 1
        assert [t.tag for t in metrics.most_corrected_tags] == ["urgent"]

    def test_metrics_on_empty_store(self, service):
        payload = service.get_metrics().to_api()

        assert payload == {
            "totalPredictions": 0,
            "accuratePredictions": 0,
            "accuracy": 0.0,
            "mostCorrectedTags": [],
            "feedbackStats": {"positive": 0, "negative": 0, "corrections": 0},
        }

    def test_recent_corrections_newest_first(self, service):
        for n in range(4):
            service.record_correction(f"m-{n}", ["bug"], [])

        recent = service.get_recent_corrections(limit=3)

        assert [c.message_id for c in recent] == ["m-3", "m-2", "m-1"]

    @pytest.mark.parametrize("limit", [0, -1, 501])
    def test_recent_corrections_limit_bounds(self, service, limit):
        with pytest.raises(ValidationError):
            service.get_recent_corrections(limit=limit)


class TestTagCounters:
    def test_unknown_tag(self, service):
        with pytest.raises(NotFoundError, match="no learning history"):
            service.get_tag_counter("nope")

    def test_lists_known_tags(self, service):
        service.record_correction("m-1", ["urgent"], ["bug"])

        assert [c.tag for c in service.list_tag_counters()] == ["bug", "urgent"]
        assert service.get_tag_counter("urgent").times_rejected == 1
