"""
Digest catalog - append-only digest history per category.

Digests accumulate; "latest" and "recent" queries order by ``createdAt``
descending. The only removal path is the retention policy in ``prune``,
which always keeps each category's newest digest.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

from newsdigest.config import DIGEST_LIST_LIMIT_DEFAULT, DIGESTS_COLLECTION
from newsdigest.digest.models import Digest, utc_now
from newsdigest.errors import DigestNotFoundError, InvalidInputError
from newsdigest.observability.logging import get_logger
from newsdigest.observability.telemetry import counter, log_event
from newsdigest.storage.record_store import Record, RecordStore, get_record_store

logger = get_logger(__name__)


def _newest_first(records: list[Record]) -> list[Digest]:
    # Ties on createdAt: the later-appended record wins
    indexed = [(Digest.from_record(record), index) for index, record in enumerate(records)]
    indexed.sort(key=lambda pair: (pair[0].created_at, pair[1]), reverse=True)
    return [digest for digest, _ in indexed]


class DigestCatalog:
    """Digest history over the ``digests`` collection."""

    def __init__(
        self,
        store: RecordStore | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store or get_record_store()
        self.clock = clock

    async def append(self, category: str, content: str, citations: list[str]) -> Digest:
        """
        Create and persist a new immutable digest.

        The id is the creation time in epoch milliseconds with a category
        suffix, so categories generated in the same instant never collide; a
        same-category collision bumps the millisecond part.
        """
        created_at = self.clock()

        def add(records: list[Record]) -> Digest:
            existing_ids = {record.get("id") for record in records}
            millis = int(created_at.timestamp() * 1000)
            digest_id = f"{millis}-{category}"
            while digest_id in existing_ids:
                millis += 1
                digest_id = f"{millis}-{category}"

            digest = Digest(
                id=digest_id,
                category=category,
                content=content,
                citations=list(citations),
                created_at=created_at,
            )
            records.append(digest.to_record())
            return digest

        digest = await self.store.mutate(DIGESTS_COLLECTION, add)

        counter("digests.appended")
        log_event("digest.appended", digest_id=digest.id, category=category)
        return digest

    async def latest(self, category: str) -> Digest:
        """
        Newest digest for a category.

        Raises:
            DigestNotFoundError: the category has no digests yet
        """
        digests = await self.recent(category, limit=1)
        if not digests:
            raise DigestNotFoundError("No digest found")
        return digests[0]

    async def recent(self, category: str, limit: int = DIGEST_LIST_LIMIT_DEFAULT) -> list[Digest]:
        """Up to ``limit`` digests for a category, newest first."""
        if limit < 1:
            raise InvalidInputError("limit must be a positive integer")

        records = await self.store.load_or_empty(DIGESTS_COLLECTION)
        matching = [record for record in records if record.get("category") == category]
        return _newest_first(matching)[:limit]

    async def prune(self, retention_days: int) -> int:
        """
        Delete digests older than ``retention_days``, keeping each category's newest.

        ``retention_days <= 0`` disables pruning.

        Returns:
            Number of digests deleted
        """
        if retention_days <= 0:
            return 0

        cutoff = self.clock() - timedelta(days=retention_days)

        def drop_expired(records: list[Record]) -> int:
            keep_ids: set[str] = set()
            by_category: dict[str, list[Record]] = {}
            for record in records:
                by_category.setdefault(record.get("category", ""), []).append(record)
            for category_records in by_category.values():
                keep_ids.add(_newest_first(category_records)[0].id)

            kept = [
                record
                for record in records
                if record.get("id") in keep_ids or Digest.from_record(record).created_at >= cutoff
            ]
            deleted = len(records) - len(kept)
            records[:] = kept
            return deleted

        deleted = await self.store.mutate(DIGESTS_COLLECTION, drop_expired)

        if deleted:
            counter("digests.pruned", deleted)
        log_event("digest.pruned", retention_days=retention_days, deleted=deleted)
        return deleted


# Global instance
_catalog: DigestCatalog | None = None


def get_digest_catalog() -> DigestCatalog:
    """Get global digest catalog instance"""
    global _catalog
    if _catalog is None:
        _catalog = DigestCatalog()
    return _catalog
