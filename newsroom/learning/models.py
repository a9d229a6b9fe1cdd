"""
Domain models (Pydantic v2) for the tag learning pipeline.

Corrections and feedback are immutable log entries. Tag counters are the
derived state the recorders maintain and the suggestion improver reads.
JSON field names are camelCase; Python attributes are snake_case.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


def normalize_tags(tags: Iterable[str]) -> list[str]:
    """Strip, drop blanks and de-duplicate, keeping first-seen order."""
    seen: set[str] = set()
    result: list[str] = []
    for raw in tags:
        tag = raw.strip()
        if tag and tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result


def utcnow() -> datetime:
    return datetime.now(UTC)


class FeedbackPolarity(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


class LearningModel(BaseModel):
    """Base for learning records: camelCase on the wire, immutable in memory."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Correction(LearningModel):
    """A user's corrected tag set for a message, next to what was suggested."""

    id: str
    message_id: str
    original_tags: list[str]
    corrected_tags: list[str]
    user_id: str | None = None
    recorded_at: datetime = Field(default_factory=utcnow)

    @property
    def is_exact_match(self) -> bool:
        """True when the suggestion needed no change."""
        return set(self.original_tags) == set(self.corrected_tags)

    @property
    def removed_tags(self) -> list[str]:
        corrected = set(self.corrected_tags)
        return [t for t in self.original_tags if t not in corrected]

    @property
    def confirmed_tags(self) -> list[str]:
        corrected = set(self.corrected_tags)
        return [t for t in self.original_tags if t in corrected]

    @property
    def added_tags(self) -> list[str]:
        original = set(self.original_tags)
        return [t for t in self.corrected_tags if t not in original]

    def to_db_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "message_id": self.message_id,
            "original_tags": json.dumps(self.original_tags),
            "corrected_tags": json.dumps(self.corrected_tags),
            "user_id": self.user_id,
            "recorded_at": self.recorded_at.isoformat(),
        }

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> Correction:
        return cls(
            id=row["id"],
            message_id=row["message_id"],
            original_tags=json.loads(row["original_tags"]),
            corrected_tags=json.loads(row["corrected_tags"]),
            user_id=row["user_id"],
            recorded_at=datetime.fromisoformat(row["recorded_at"]),
        )


class Feedback(LearningModel):
    """A thumbs-up/down on a message's tag set."""

    id: str
    message_id: str
    tags: list[str]
    polarity: FeedbackPolarity
    user_id: str | None = None
    recorded_at: datetime = Field(default_factory=utcnow)

    def to_db_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "message_id": self.message_id,
            "tags": json.dumps(self.tags),
            "polarity": self.polarity.value,
            "user_id": self.user_id,
            "recorded_at": self.recorded_at.isoformat(),
        }

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> Feedback:
        return cls(
            id=row["id"],
            message_id=row["message_id"],
            tags=json.loads(row["tags"]),
            polarity=FeedbackPolarity(row["polarity"]),
            user_id=row["user_id"],
            recorded_at=datetime.fromisoformat(row["recorded_at"]),
        )


class TagAccuracyCounter(LearningModel):
    tag: str
    times_suggested: int = 0
    times_confirmed: int = 0
    times_rejected: int = 0
    times_added: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def samples(self) -> int:
        """Observations that count toward reliability (added tags don't)."""
        return self.times_confirmed + self.times_rejected

    @computed_field  # type: ignore[prop-decorator]
    @property
    def reliability(self) -> float:
        return self.times_confirmed / max(1, self.samples)

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> TagAccuracyCounter:
        return cls(
            tag=row["tag"],
            times_suggested=row["times_suggested"],
            times_confirmed=row["times_confirmed"],
            times_rejected=row["times_rejected"],
            times_added=row["times_added"],
        )


class LearningStats(LearningModel):
    total_predictions: int = 0
    accurate_predictions: int = 0
    accuracy: float = 0.0

    @classmethod
    def from_counts(cls, total: int, accurate: int) -> LearningStats:
        if accurate > total:
            raise ValueError(f"accurate predictions ({accurate}) exceed total ({total})")
        return cls(
            total_predictions=total,
            accurate_predictions=accurate,
            accuracy=accurate / total if total else 0.0,
        )


class CorrectedTag(LearningModel):
    tag: str
    corrections: int


class FeedbackStats(LearningModel):
    positive: int = 0
    negative: int = 0
    corrections: int = 0


class LearningMetrics(LearningStats):
    """LearningStats plus the dashboard breakdowns."""

    most_corrected_tags: list[CorrectedTag] = Field(default_factory=list)
    feedback_stats: FeedbackStats = Field(default_factory=FeedbackStats)
