"""
Learning repositories - append-only logs and the tag counter table.

Follows the database patterns in newsroom/infrastructure/database.py. Write
methods take an optional connection so a caller can group an append with its
counter updates inside one write_transaction().
"""

from __future__ import annotations

import sqlite3
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from datetime import UTC, datetime
from enum import Enum

from newsroom.exceptions import StorageError
from newsroom.infrastructure.database import (
    get_db_connection,
    retry_on_db_lock,
    write_transaction,
)
from newsroom.learning.models import Correction, Feedback, FeedbackPolarity, TagAccuracyCounter
from newsroom.observability.logging import get_logger

logger = get_logger(__name__)


class CounterField(str, Enum):
    SUGGESTED = "times_suggested"
    CONFIRMED = "times_confirmed"
    REJECTED = "times_rejected"
    ADDED = "times_added"


@contextmanager
def storage_errors(action: str) -> Generator[None, None, None]:
    """Re-raise database failures as StorageError."""
    try:
        yield
    except (sqlite3.Error, FileNotFoundError, RuntimeError) as e:
        logger.error("Storage failure while %s: %s", action, e)
        raise StorageError(f"Failed to {action}") from e


@contextmanager
def _connection(conn: sqlite3.Connection | None) -> Generator[sqlite3.Connection, None, None]:
    if conn is not None:
        yield conn
        return
    with write_transaction() as own:
        yield own


def _next_seq(conn: sqlite3.Connection, table: str) -> int:
    row = conn.execute(f"SELECT COALESCE(MAX(seq), 0) + 1 FROM {table}").fetchone()
    return int(row[0])


class CorrectionLog:
    """Append-only log of tag corrections."""

    def append(self, correction: Correction, conn: sqlite3.Connection | None = None) -> None:
        """
        Side Effects:
            - Inserts one row into tag_corrections
        """
        with _connection(conn) as c:
            row = correction.to_db_dict()
            row["seq"] = _next_seq(c, "tag_corrections")
            c.execute(
                """
                INSERT INTO tag_corrections (
                    id, seq, message_id, original_tags, corrected_tags, user_id, recorded_at
                ) VALUES (
                    :id, :seq, :message_id, :original_tags, :corrected_tags, :user_id, :recorded_at
                )
                """,
                row,
            )

    def scan(self) -> list[Correction]:
        """Every correction, oldest first."""
        with get_db_connection() as conn:
            rows = conn.execute("SELECT * FROM tag_corrections ORDER BY seq ASC").fetchall()
        return [Correction.from_db_row(dict(row)) for row in rows]

    def recent(self, limit: int = 50) -> list[Correction]:
        """Most recent corrections, newest first."""
        with get_db_connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM tag_corrections
                ORDER BY recorded_at DESC, seq DESC
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
        return [Correction.from_db_row(dict(row)) for row in rows]

    def count(self) -> int:
        with get_db_connection() as conn:
            return int(conn.execute("SELECT COUNT(*) FROM tag_corrections").fetchone()[0])


class FeedbackLog:
    """Append-only log of positive/negative tag feedback."""

    def append(self, feedback: Feedback, conn: sqlite3.Connection | None = None) -> None:
        with _connection(conn) as c:
            row = feedback.to_db_dict()
            row["seq"] = _next_seq(c, "tag_feedback")
            c.execute(
                """
                INSERT INTO tag_feedback (
                    id, seq, message_id, tags, polarity, user_id, recorded_at
                ) VALUES (
                    :id, :seq, :message_id, :tags, :polarity, :user_id, :recorded_at
                )
                """,
                row,
            )

    def scan(self) -> list[Feedback]:
        with get_db_connection() as conn:
            rows = conn.execute("SELECT * FROM tag_feedback ORDER BY seq ASC").fetchall()
        return [Feedback.from_db_row(dict(row)) for row in rows]

    def count_by_polarity(self) -> dict[FeedbackPolarity, int]:
        counts = {polarity: 0 for polarity in FeedbackPolarity}
        with get_db_connection() as conn:
            rows = conn.execute(
                "SELECT polarity, COUNT(*) AS n FROM tag_feedback GROUP BY polarity"
            ).fetchall()
        for row in rows:
            counts[FeedbackPolarity(row["polarity"])] = row["n"]
        return counts


class TagCounterStore:
    """
    Keyed counter table: tag -> suggested/confirmed/rejected/added.

    Counters are only ever incremented, and only by the recorders.
    """

    def get(self, tag: str) -> TagAccuracyCounter | None:
        with get_db_connection() as conn:
            row = conn.execute("SELECT * FROM tag_accuracy WHERE tag = ?", (tag,)).fetchone()
        return TagAccuracyCounter.from_db_row(dict(row)) if row else None

    def get_many(self, tags: Iterable[str]) -> dict[str, TagAccuracyCounter]:
        wanted = list(dict.fromkeys(tags))
        if not wanted:
            return {}
        placeholders = ",".join("?" * len(wanted))
        with get_db_connection() as conn:
            rows = conn.execute(
                f"SELECT * FROM tag_accuracy WHERE tag IN ({placeholders})",
                wanted,
            ).fetchall()
        return {row["tag"]: TagAccuracyCounter.from_db_row(dict(row)) for row in rows}

    def list_all(self) -> list[TagAccuracyCounter]:
        with get_db_connection() as conn:
            rows = conn.execute("SELECT * FROM tag_accuracy ORDER BY tag ASC").fetchall()
        return [TagAccuracyCounter.from_db_row(dict(row)) for row in rows]

    def increment(
        self,
        tag: str,
        field: CounterField,
        amount: int = 1,
        conn: sqlite3.Connection | None = None,
    ) -> None:
        """
        Side Effects:
            - Upserts the tag's row in tag_accuracy, adding `amount` to `field`
        """
        column = CounterField(field).value
        now = datetime.now(UTC).isoformat()
        with _connection(conn) as c:
            c.execute(
                f"""
                INSERT INTO tag_accuracy (tag, {column}, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(tag) DO UPDATE SET
                    {column} = {column} + excluded.{column},
                    updated_at = excluded.updated_at
                """,
                (tag, amount, now),
            )


@retry_on_db_lock()
def run_in_write_transaction(work) -> None:  # type: ignore[no-untyped-def]
    """Run `work(conn)` inside one serialized transaction, retrying on SQLITE_BUSY."""
    with write_transaction() as conn:
        work(conn)
