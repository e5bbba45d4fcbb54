"""
Error message sanitization for API responses.

Keeps file paths, SQL errors and internal module names out of the
messages returned to clients.
"""

from __future__ import annotations

import re

from feedq.observability.logging import get_logger

logger = get_logger(__name__)

SENSITIVE_PATTERNS = [
    # File paths
    r"/[^\s]+\.(py|db)",
    r"[A-Za-z]:\\[^\s]+",
    # Stack traces
    r"Traceback \(most recent call last\)",
    r"File \".*\"",
    # Database errors
    r"sqlite3?\.",
    r"CHECK constraint",
    r"no such table",
    r"no such column",
    r"\bSELECT\b|\bDELETE\b|\bINSERT\b",
    # Internal module names
    r"feedq\.[a-z_.]+",
]

GENERIC_MESSAGES = {
    400: "Invalid request. Please check your input and try again.",
    401: "Authentication required.",
    404: "Resource not found.",
    422: "Invalid data format.",
    500: "An internal error occurred. Please try again later.",
    503: "Service temporarily unavailable.",
}


def sanitize_error_message(message: str, status_code: int = 500) -> str:
    """
    Sanitize an error message before it reaches a client.

    Short, single-line 400 messages without sensitive content pass through
    unchanged; everything else is replaced with a generic message.
    """
    generic = GENERIC_MESSAGES.get(status_code, "An error occurred.")
    if not message:
        return generic

    for pattern in SENSITIVE_PATTERNS:
        if re.search(pattern, message, re.IGNORECASE):
            logger.warning("Sanitized sensitive error pattern: %s", pattern)
            return generic

    if status_code == 400 and len(message) < 100 and "\n" not in message:
        return message

    return generic
