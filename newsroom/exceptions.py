"""Custom exceptions for the Newsroom learning service.

Each error carries the HTTP status the API layer reports it with.
"""

from __future__ import annotations


class NewsroomError(Exception):
    """Base exception for the learning service."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(NewsroomError):
    """Raised when a required field is missing or malformed."""

    status_code = 400


class NotFoundError(NewsroomError):
    """Raised when a referenced message or tag does not exist."""

    status_code = 404


class StorageError(NewsroomError):
    """Raised when the underlying store cannot be read or written."""

    status_code = 500
