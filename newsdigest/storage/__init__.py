"""Storage - whole-collection JSON record store"""

from __future__ import annotations

from newsdigest.storage.record_store import Record, RecordStore, get_record_store

__all__ = ["Record", "RecordStore", "get_record_store"]
