"""Unit tests for API request validation"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from newsroom.api.models import (
    CorrectionRequest,
    FeedbackRequest,
    SuggestionRequest,
    failure,
    ok,
)
from newsroom.learning.models import FeedbackPolarity


class TestCorrectionRequest:
    def test_accepts_camel_case(self):
        body = CorrectionRequest.model_validate(
            {"messageId": " msg-1 ", "originalTags": ["bug"], "correctedTags": []}
        )

        assert body.message_id == "msg-1"
        assert body.original_tags == ["bug"]
        assert body.user_id is None

    def test_whitespace_message_id_rejected(self):
        with pytest.raises(ValidationError, match="empty or whitespace-only"):
            CorrectionRequest.model_validate(
                {"messageId": "   ", "originalTags": [], "correctedTags": []}
            )

    def test_tags_must_be_list(self):
        with pytest.raises(ValidationError):
            CorrectionRequest.model_validate(
                {"messageId": "m", "originalTags": "bug", "correctedTags": []}
            )

    def test_too_many_tags(self):
        with pytest.raises(ValidationError):
            CorrectionRequest.model_validate(
                {"messageId": "m", "originalTags": [f"t{i}" for i in range(101)], "correctedTags": []}
            )

    def test_tag_too_long(self):
        with pytest.raises(ValidationError, match="Tag too long"):
            CorrectionRequest.model_validate(
                {"messageId": "m", "originalTags": ["x" * 101], "correctedTags": []}
            )


class TestFeedbackRequest:
    def test_parses_polarity(self):
        body = FeedbackRequest.model_validate(
            {"messageId": "m", "tags": ["bug"], "feedback": "negative", "userId": "u-1"}
        )

        assert body.feedback is FeedbackPolarity.NEGATIVE
        assert body.user_id == "u-1"

    def test_rejects_unknown_polarity(self):
        with pytest.raises(ValidationError):
            FeedbackRequest.model_validate({"messageId": "m", "tags": ["bug"], "feedback": "meh"})


class TestSuggestionRequest:
    def test_requires_channel(self):
        with pytest.raises(ValidationError):
            SuggestionRequest.model_validate(
                {"messageText": "deploy", "channelName": "", "originalSuggestions": []}
            )

    def test_snake_case_also_accepted(self):
        body = SuggestionRequest(
            message_text="deploy", channel_name="ops", original_suggestions=["bug"]
        )

        assert body.original_suggestions == ["bug"]


def test_envelope_helpers_omit_empty_fields():
    assert ok({"a": 1}) == {"success": True, "data": {"a": 1}}
    assert failure("Nope", "details") == {"success": False, "error": "Nope", "message": "details"}
