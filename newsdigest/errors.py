"""
Error taxonomy for NewsDigest.

Every domain error carries the HTTP status it maps to so the API layer can
translate it in one place. Validation errors are raised at the
registry/catalog boundary; store and collaborator errors are raised by the
layers that own those resources and translated at the pipeline/API boundary.
"""

from __future__ import annotations


class NewsDigestError(Exception):
    """Base exception for NewsDigest errors."""

    status_code: int = 500


class InvalidInputError(NewsDigestError):
    """Client sent a malformed or missing field."""

    status_code = 400


class UnauthorizedError(NewsDigestError):
    """Caller identity is required but missing."""

    status_code = 401


class NotFoundError(NewsDigestError):
    """No matching record."""

    status_code = 404


class SubscriptionNotFoundError(NotFoundError):
    pass


class DigestNotFoundError(NotFoundError):
    pass


class GenerationError(NewsDigestError):
    """The summarization collaborator failed (timeout, non-2xx, malformed payload)."""

    status_code = 500

    def __init__(self, category: str, reason: str):
        super().__init__(f"Failed to generate digest for {category}: {reason}")
        self.category = category
        self.reason = reason


class StoreError(NewsDigestError):
    """Persistence layer failure. Never swallowed."""

    status_code = 500


class StoreNotFoundError(StoreError):
    """Collection was never initialized."""


class StoreCorruptError(StoreError):
    """Persisted collection does not parse as a JSON array of records."""


class StoreIOError(StoreError):
    """Underlying read/write failure."""
