"""
Subscription domain model.

Records are persisted and served with camelCase keys
(``deliveryTime``, ``userId``, ``createdAt``, ``updatedAt``).
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from newsdigest.errors import StoreCorruptError


def utc_now() -> datetime:
    """Return current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    # Never set here; records paused by other writers of the store are read
    # back, skipped by delivery, and reactivated by a repeat subscribe
    PAUSED = "paused"


class Subscription(BaseModel):
    """A standing request to receive a category's digest at a delivery time."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    id: str = Field(..., description="Assigned once at creation, immutable")
    category: str
    email: str
    delivery_time: str = Field(..., description="Preferred delivery time, e.g. '08:00'")
    user_id: str | None = Field(default=None, description="Owner's identity subject, if any")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE

    def is_active(self) -> bool:
        return self.status == SubscriptionStatus.ACTIVE.value

    def to_record(self) -> dict[str, Any]:
        """Convert to a JSON-safe camelCase dict for the record store."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Subscription:
        """
        Raises:
            StoreCorruptError: the stored record does not match the subscription schema
        """
        try:
            return cls.model_validate(record)
        except ValidationError as e:
            raise StoreCorruptError(
                f"Stored subscription {record.get('id')!r} is malformed"
            ) from e
