"""
Subscription registry - upsert, per-user listing and removal.

Every operation round-trips through the record store; nothing is cached
between calls. Writes run inside ``RecordStore.mutate`` so concurrent
subscribe/unsubscribe calls in this process cannot lose each other's updates.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime

from newsdigest.config import SUBSCRIPTIONS_COLLECTION
from newsdigest.errors import InvalidInputError, SubscriptionNotFoundError, UnauthorizedError
from newsdigest.observability.logging import get_logger
from newsdigest.observability.telemetry import counter, log_event
from newsdigest.storage.record_store import Record, RecordStore, get_record_store
from newsdigest.subscriptions.models import Subscription, SubscriptionStatus, utc_now
from newsdigest.utils.redaction import redact_email
from newsdigest.utils.validators import validate_category, validate_email

logger = get_logger(__name__)


class SubscriptionRegistry:
    """Subscription CRUD over the ``subscriptions`` collection."""

    def __init__(
        self,
        store: RecordStore | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store or get_record_store()
        self.clock = clock

    async def subscribe(
        self,
        category: str | None,
        email: str | None,
        delivery_time: str | None,
        user_id: str | None = None,
    ) -> Subscription:
        """
        Create or update the subscription for (email, category).

        A repeat subscribe for the same pair keeps ``id`` and ``createdAt``,
        takes the new delivery time, reactivates the record and refreshes
        ``updatedAt``. ``userId`` is only ever set, never cleared.

        Raises:
            InvalidInputError: missing field, unknown category or malformed email
        """
        email = (email or "").strip()
        delivery_time = (delivery_time or "").strip()
        if not category or not email or not delivery_time:
            raise InvalidInputError("Missing required fields")
        validate_category(category)
        validate_email(email)

        now = self.clock()

        def upsert(records: list[Record]) -> tuple[Subscription, bool]:
            for index, record in enumerate(records):
                if record.get("email") == email and record.get("category") == category:
                    existing = Subscription.from_record(record)
                    updated = existing.model_copy(
                        update={
                            "delivery_time": delivery_time,
                            "status": SubscriptionStatus.ACTIVE.value,
                            "updated_at": now,
                            "user_id": user_id or existing.user_id,
                        }
                    )
                    records[index] = updated.to_record()
                    return updated, False

            created = Subscription(
                id=uuid.uuid4().hex,
                category=category,
                email=email,
                delivery_time=delivery_time,
                user_id=user_id,
                created_at=now,
                updated_at=now,
                status=SubscriptionStatus.ACTIVE,
            )
            records.append(created.to_record())
            return created, True

        subscription, created = await self.store.mutate(SUBSCRIPTIONS_COLLECTION, upsert)

        counter("subscriptions.created" if created else "subscriptions.updated")
        log_event(
            "subscription.upserted",
            subscription_id=subscription.id,
            category=category,
            email=redact_email(email),
            created=created,
            authenticated=user_id is not None,
        )
        return subscription

    async def list_for_user(self, user_id: str | None) -> list[Subscription]:
        """
        All subscriptions owned by ``user_id``, in stored order.

        Raises:
            UnauthorizedError: no identity supplied
        """
        if not user_id:
            raise UnauthorizedError("Authentication required")

        records = await self.store.load_or_empty(SUBSCRIPTIONS_COLLECTION)
        return [
            Subscription.from_record(record) for record in records if record.get("userId") == user_id
        ]

    async def unsubscribe(self, subscription_id: str, user_id: str | None) -> None:
        """
        Hard-delete a subscription owned by ``user_id``.

        A record that exists under another owner is reported exactly like a
        missing one.

        Raises:
            UnauthorizedError: no identity supplied
            SubscriptionNotFoundError: no record with this id for this owner
        """
        if not user_id:
            raise UnauthorizedError("Authentication required")

        def remove(records: list[Record]) -> None:
            for index, record in enumerate(records):
                if record.get("id") == subscription_id and record.get("userId") == user_id:
                    del records[index]
                    return
            raise SubscriptionNotFoundError("Subscription not found")

        await self.store.mutate(SUBSCRIPTIONS_COLLECTION, remove)

        counter("subscriptions.deleted")
        log_event("subscription.deleted", subscription_id=subscription_id)

    async def active_for_category(self, category: str) -> list[Subscription]:
        """Active subscribers for a category (consumed by digest delivery)."""
        records = await self.store.load_or_empty(SUBSCRIPTIONS_COLLECTION)
        return [
            Subscription.from_record(record)
            for record in records
            if record.get("category") == category
            and record.get("status") == SubscriptionStatus.ACTIVE.value
        ]


# Global instance
_registry: SubscriptionRegistry | None = None


def get_subscription_registry() -> SubscriptionRegistry:
    """Get global subscription registry instance"""
    global _registry
    if _registry is None:
        _registry = SubscriptionRegistry()
    return _registry
