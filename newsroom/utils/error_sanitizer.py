"""
Error message sanitization utility.

Keeps file paths, SQL fragments and module names out of the error envelopes
returned to the dashboard.
"""

from __future__ import annotations

import re

from newsroom.observability.logging import get_logger

logger = get_logger(__name__)

SENSITIVE_PATTERNS = [
    # File paths
    r"/[^\s]+\.(py|db)",
    r"[A-Za-z]:\\[^\s]+",
    # Stack trace indicators
    r"Traceback \(most recent call last\)",
    r"File \".*\"",
    # Database errors
    r"sqlite3?\.",
    r"UNIQUE constraint",
    r"CHECK constraint",
    r"no such table",
    r"no such column",
    r"database is locked",
    # Internal module names
    r"newsroom\.[a-z_.]+",
]

GENERIC_MESSAGES = {
    400: "Invalid request. Please check your input and try again.",
    404: "Resource not found.",
    429: "Too many requests. Please try again later.",
    500: "An internal error occurred. Please try again later.",
    503: "Service temporarily unavailable.",
}


def generic_message(status_code: int) -> str:
    return GENERIC_MESSAGES.get(status_code, "An error occurred.")


def sanitize_error_message(message: str, status_code: int = 500) -> str:
    """
    Sanitize an error message before it reaches a client.

    Client errors (4xx) keep short plain messages such as
    "messageId is required"; server errors always get the generic text.
    """
    if not message:
        return generic_message(status_code)

    for pattern in SENSITIVE_PATTERNS:
        if re.search(pattern, message, re.IGNORECASE):
            logger.warning("Sanitized sensitive error pattern: %s", pattern)
            return generic_message(status_code)

    if (
        400 <= status_code < 500
        and len(message) < 200
        and not any(c in message for c in ["{", "}", "\n"])
    ):
        return message

    return generic_message(status_code)
