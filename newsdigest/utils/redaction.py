"""
Redaction helpers for logging subscriber data without exposing it.
"""

from __future__ import annotations

from hashlib import sha256


def redact(value: str | None) -> str:
    """
    Return a stable hash representation of a sensitive string.
    """
    if not value:
        return "hash:missing"
    digest = sha256(value.encode("utf-8")).hexdigest()[:12]
    return f"hash:{digest}"


def redact_email(email: str | None) -> str:
    """
    Keep the domain for debuggability, hash the local part.

    Example:
        "alice@example.com" -> "hash:2bd806c97f0e@example.com"
    """
    if not email or "@" not in email:
        return redact(email)
    local, _, domain = email.rpartition("@")
    return f"{redact(local)}@{domain}"
