"""
Database schema for the tag learning pipeline.

Two append-only logs (corrections, feedback) and one keyed counter table.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from newsroom.observability.logging import get_logger

logger = get_logger(__name__)


def init_database(db_path: Path) -> None:
    """
    Initialize database with schema (idempotent)

    Args:
        db_path: Path to the database file

    Side Effects:
    - Creates the parent directory if needed
    - Creates tables and indexes if they don't exist
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)

    conn.executescript("""
        -- Append-only: rows are never updated or deleted
        CREATE TABLE IF NOT EXISTS tag_corrections (
            id TEXT PRIMARY KEY,
            seq INTEGER NOT NULL,
            message_id TEXT NOT NULL,
            original_tags TEXT NOT NULL,
            corrected_tags TEXT NOT NULL,
            user_id TEXT,
            recorded_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS tag_feedback (
            id TEXT PRIMARY KEY,
            seq INTEGER NOT NULL,
            message_id TEXT NOT NULL,
            tags TEXT NOT NULL,
            polarity TEXT NOT NULL CHECK (polarity IN ('positive', 'negative')),
            user_id TEXT,
            recorded_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS tag_accuracy (
            tag TEXT PRIMARY KEY,
            times_suggested INTEGER NOT NULL DEFAULT 0,
            times_confirmed INTEGER NOT NULL DEFAULT 0,
            times_rejected INTEGER NOT NULL DEFAULT 0,
            times_added INTEGER NOT NULL DEFAULT 0,
            updated_at TEXT
        );

        CREATE INDEX IF NOT EXISTS idx_tag_corrections_recent
        ON tag_corrections(recorded_at DESC, seq DESC);

        CREATE INDEX IF NOT EXISTS idx_tag_corrections_message
        ON tag_corrections(message_id);

        CREATE INDEX IF NOT EXISTS idx_tag_feedback_message
        ON tag_feedback(message_id);
    """)

    conn.commit()
    conn.close()

    logger.info("Database initialized: %s", db_path)


def validate_schema(conn: sqlite3.Connection) -> bool:
    """
    Validate database has expected schema

    Raises:
        ValueError: If tables or columns are missing
    """
    required_tables = {
        "tag_corrections": ["id", "seq", "message_id", "original_tags", "corrected_tags"],
        "tag_feedback": ["id", "seq", "message_id", "tags", "polarity"],
        "tag_accuracy": ["tag", "times_suggested", "times_confirmed", "times_rejected"],
    }

    cursor = conn.cursor()

    cursor.execute("SELECT name FROM sqlite_master WHERE type='table'")
    existing_tables = {row[0] for row in cursor.fetchall()}

    missing_tables = set(required_tables.keys()) - existing_tables
    if missing_tables:
        raise ValueError(f"Database missing tables: {missing_tables}")

    for table, required_cols in required_tables.items():
        # Identifiers can't be parameterized; names come from the dict above
        cursor.execute(f"PRAGMA table_info({table})")
        existing_cols = {row[1] for row in cursor.fetchall()}

        missing_cols = set(required_cols) - existing_cols
        if missing_cols:
            raise ValueError(f"Table '{table}' missing columns: {missing_cols}")

    return True
