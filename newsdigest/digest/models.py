"""
Digest domain model.

A digest is one generated summary snapshot for a category. Digests are
immutable once created; the catalog only ever appends them.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from newsdigest.errors import StoreCorruptError


def utc_now() -> datetime:
    """Return current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


class Digest(BaseModel):
    """Generated digest text plus its source citations."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    category: str
    content: str = Field(..., description="Raw generated text")
    citations: list[str] = Field(default_factory=list, description="Source URLs, in order")
    created_at: datetime = Field(default_factory=utc_now)

    def to_record(self) -> dict[str, Any]:
        """Convert to a JSON-safe camelCase dict for the record store."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Digest:
        """
        Raises:
            StoreCorruptError: the stored record does not match the digest schema
        """
        try:
            return cls.model_validate(record)
        except ValidationError as e:
            raise StoreCorruptError(f"Stored digest {record.get('id')!r} is malformed") from e


class SummaryResult(BaseModel):
    """What the summarization collaborator hands back for one category."""

    text: str
    citations: list[str] = Field(default_factory=list)
