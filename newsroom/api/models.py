"""Pydantic request/response models for the Newsroom learning API.

Request bodies are validated here, at the boundary, before they reach the
learning components. Every response uses the ApiResponse envelope.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from newsroom.config import API_MAX_TAG_LENGTH, API_MAX_TAGS, API_MAX_TEXT_LENGTH
from newsroom.learning.models import FeedbackPolarity

# =============================================================================
# ENVELOPE
# =============================================================================


class ApiResponse(BaseModel):
    """Standard response envelope: { success, data?, error?, message? }."""

    success: bool
    data: Any = None
    error: str | None = None
    message: str | None = None

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


def ok(data: Any = None, message: str | None = None) -> dict[str, Any]:
    return ApiResponse(success=True, data=data, message=message).to_json()


def failure(error: str, message: str | None = None) -> dict[str, Any]:
    return ApiResponse(success=False, error=error, message=message).to_json()


# =============================================================================
# REQUESTS
# =============================================================================


class RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _check_tags(tags: list[str]) -> list[str]:
    for tag in tags:
        if len(tag) > API_MAX_TAG_LENGTH:
            raise ValueError(f"Tag too long: {len(tag)} > {API_MAX_TAG_LENGTH}")
    return tags


def _check_message_id(v: str) -> str:
    if not v.strip():
        raise ValueError("messageId cannot be empty or whitespace-only")
    return v.strip()


class CorrectionRequest(RequestModel):
    message_id: str = Field(..., min_length=1, max_length=500)
    original_tags: list[str] = Field(..., max_length=API_MAX_TAGS)
    corrected_tags: list[str] = Field(..., max_length=API_MAX_TAGS)
    user_id: str | None = Field(default=None, max_length=100)

    @field_validator("message_id")
    @classmethod
    def validate_message_id(cls, v: str) -> str:
        return _check_message_id(v)

    @field_validator("original_tags", "corrected_tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        return _check_tags(v)


class FeedbackRequest(RequestModel):
    message_id: str = Field(..., min_length=1, max_length=500)
    tags: list[str] = Field(..., max_length=API_MAX_TAGS)
    feedback: FeedbackPolarity
    user_id: str | None = Field(default=None, max_length=100)

    @field_validator("message_id")
    @classmethod
    def validate_message_id(cls, v: str) -> str:
        return _check_message_id(v)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        return _check_tags(v)


class SuggestionRequest(RequestModel):
    message_text: str = Field(..., min_length=1, max_length=API_MAX_TEXT_LENGTH)
    channel_name: str = Field(..., min_length=1, max_length=200)
    original_suggestions: list[str] = Field(..., max_length=API_MAX_TAGS)

    @field_validator("original_suggestions")
    @classmethod
    def validate_suggestions(cls, v: list[str]) -> list[str]:
        return _check_tags(v)
