"""
Record store: whole-collection JSON persistence.

Each collection (subscriptions, digests, scheduler_state) is one JSON array in
``<data_dir>/<collection>.json``. ``load`` and ``save`` act on the full
snapshot; there is no row-level API.

Writes go to a temp file in the same directory, are fsynced, and then
``os.replace``d onto the target, so a concurrent ``load`` sees either the old
or the new snapshot, never a partial one.

``mutate`` is the read-modify-write entry point. It holds a per-collection
``asyncio.Lock`` across load → fn → save so writers in this process are
serialized and cannot lose each other's updates.
"""

from __future__ import annotations

import asyncio
import json
import os
import re
import tempfile
import weakref
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from newsdigest.config import DATA_DIR
from newsdigest.errors import StoreCorruptError, StoreIOError, StoreNotFoundError
from newsdigest.observability.logging import get_logger
from newsdigest.observability.telemetry import counter, time_block

logger = get_logger(__name__)

T = TypeVar("T")

Record = dict[str, Any]

_COLLECTION_NAME = re.compile(r"^[a-z][a-z0-9_-]*$")


class RecordStore:
    """
    Concurrency-safe load/mutate/save over named collections of records.

    All disk access runs in a worker thread (``asyncio.to_thread``) so store
    calls only suspend the calling task.
    """

    def __init__(self, data_dir: Path | str = DATA_DIR):
        self.data_dir = Path(data_dir)
        # Locks are loop-bound once contended; keep one set per event loop
        self._locks: weakref.WeakKeyDictionary[
            asyncio.AbstractEventLoop, dict[str, asyncio.Lock]
        ] = weakref.WeakKeyDictionary()

    def path_for(self, collection: str) -> Path:
        if not _COLLECTION_NAME.match(collection):
            raise ValueError(f"Invalid collection name: {collection!r}")
        return self.data_dir / f"{collection}.json"

    def _lock_for(self, collection: str) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        locks = self._locks.setdefault(loop, {})
        if collection not in locks:
            locks[collection] = asyncio.Lock()
        return locks[collection]

    async def initialize(self, *collections: str) -> None:
        """
        Create the data directory and an empty array for each missing collection.

        Side Effects:
            - Creates data_dir if needed
            - Writes ``[]`` to collections that don't exist yet
        """
        for collection in collections:
            path = self.path_for(collection)
            exists = await asyncio.to_thread(path.exists)
            if not exists:
                logger.info("Initializing empty collection %s at %s", collection, path)
                await self.save(collection, [])

    async def load(self, collection: str) -> list[Record]:
        """
        Load the full collection snapshot.

        Raises:
            StoreNotFoundError: collection was never initialized
            StoreCorruptError: content is not a JSON array of objects
            StoreIOError: read failure
        """
        path = self.path_for(collection)
        with time_block(f"store.{collection}.load.latency"):
            return await asyncio.to_thread(self._read, collection, path)

    async def save(self, collection: str, records: list[Record]) -> None:
        """
        Atomically replace the full collection snapshot.

        Raises:
            StoreIOError: write failure (the previous snapshot is left intact)
        """
        path = self.path_for(collection)
        with time_block(f"store.{collection}.save.latency"):
            await asyncio.to_thread(self._write, collection, path, list(records))
        counter(f"store.{collection}.saves")

    async def load_or_empty(self, collection: str) -> list[Record]:
        """Load a collection, treating a never-initialized one as empty."""
        try:
            return await self.load(collection)
        except StoreNotFoundError:
            return []

    async def mutate(self, collection: str, fn: Callable[[list[Record]], T]) -> T:
        """
        Serialized read-modify-write.

        ``fn`` receives the loaded records, may modify the list in place, and
        its return value is passed back to the caller after the save. If
        ``fn`` raises, nothing is written.
        """
        async with self._lock_for(collection):
            records = await self.load_or_empty(collection)
            result = fn(records)
            await self.save(collection, records)
            return result

    def _read(self, collection: str, path: Path) -> list[Record]:
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise StoreNotFoundError(f"Collection {collection} is not initialized") from None
        except OSError as e:
            logger.error("Failed to read collection %s: %s", collection, e)
            counter("store.io_errors")
            raise StoreIOError(f"Failed to read collection {collection}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("Collection %s is not valid JSON: %s", collection, e)
            counter("store.corrupt")
            raise StoreCorruptError(f"Collection {collection} is corrupt") from e

        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            logger.error("Collection %s is not an array of records", collection)
            counter("store.corrupt")
            raise StoreCorruptError(f"Collection {collection} is corrupt")

        return data

    def _write(self, collection: str, path: Path, records: list[Record]) -> None:
        tmp_path: str | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=path.parent, prefix=f".{collection}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
            tmp_path = None
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to write collection %s: %s", collection, e)
            counter("store.io_errors")
            raise StoreIOError(f"Failed to write collection {collection}") from e
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    logger.warning("Could not remove temp file %s", tmp_path)


# Global instance
_record_store: RecordStore | None = None


def get_record_store() -> RecordStore:
    """Get global record store instance"""
    global _record_store
    if _record_store is None:
        _record_store = RecordStore()
    return _record_store
