"""
Error message sanitization utility.

Prevents information leakage by sanitizing error messages before returning
them to clients. Full details stay in the server log.
"""

from __future__ import annotations

import re

from newsdigest.observability.logging import get_logger

logger = get_logger(__name__)

# Patterns that might leak sensitive information
SENSITIVE_PATTERNS = [
    # File paths
    r"/[^\s]+\.(py|json|tmp)",
    r"[A-Za-z]:\\[^\s]+",
    # Stack trace indicators
    r"Traceback \(most recent call last\)",
    r"File \".*\"",
    r"line \d+",
    # Store / JSON decoder internals
    r"Errno \d+",
    r"Expecting (value|property name)",
    r"char \d+",
    # API keys / secrets patterns
    r"[A-Za-z0-9_-]{32,}",
    r"Bearer [A-Za-z0-9._-]+",
    r"pplx-[A-Za-z0-9]+",
    # HTTP client internals
    r"https?://[^\s]+",
    # Internal module names
    r"newsdigest\.[a-z_.]+",
]

# Generic error messages for different error types
GENERIC_MESSAGES = {
    400: "Invalid request. Please check your input and try again.",
    401: "Authentication required.",
    403: "Access denied.",
    404: "Resource not found.",
    422: "Invalid data format.",
    500: "Internal server error",
    503: "Service temporarily unavailable.",
}


def sanitize_error_message(
    message: str,
    status_code: int = 500,
) -> str:
    """
    Sanitize an error message to prevent information leakage.

    Short, single-line messages without sensitive patterns pass through for
    every status; anything else collapses to the generic message for the
    status code.
    """
    if not message:
        return GENERIC_MESSAGES.get(status_code, "An error occurred.")

    for pattern in SENSITIVE_PATTERNS:
        if re.search(pattern, message, re.IGNORECASE):
            logger.warning("Sanitized sensitive error pattern: %s", pattern)
            return GENERIC_MESSAGES.get(status_code, "An error occurred.")

    if len(message) < 120 and not any(c in message for c in ["{", "}", "[", "]", "\n"]):
        return message

    return GENERIC_MESSAGES.get(status_code, "An error occurred.")
