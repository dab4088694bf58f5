"""
Pytest configuration for NewsDigest tests

Provides a temp-dir record store, a controllable clock and a fake
summarization client shared across unit and integration tests.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from newsdigest.digest.catalog import DigestCatalog
from newsdigest.digest.models import SummaryResult
from newsdigest.digest.pipeline import DigestGenerationPipeline
from newsdigest.digest.prompts import CATEGORY_TABLE
from newsdigest.observability.telemetry import reset_telemetry
from newsdigest.storage.record_store import RecordStore
from newsdigest.subscriptions.registry import SubscriptionRegistry


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeSummarizer:
    """
    Stands in for the Perplexity client.

    Returns a two-bullet summary per category unless a failure or delay was
    registered for that category.
    """

    def __init__(self):
        self.failures: dict[str, BaseException] = {}
        self.delays: dict[str, float] = {}
        self.calls: list[str] = []

    async def summarize(self, prompt: str, system_prompt: str | None = None) -> SummaryResult:
        category = next(slug for slug, info in CATEGORY_TABLE.items() if info.prompt == prompt)
        self.calls.append(category)

        if category in self.delays:
            await asyncio.sleep(self.delays[category])
        if category in self.failures:
            raise self.failures[category]

        return SummaryResult(
            text=f"• {category} headline one\n• {category} headline two",
            citations=[f"https://news.example.com/{category}"],
        )


@pytest.fixture(autouse=True)
def _clean_telemetry():
    reset_telemetry()
    yield
    reset_telemetry()


@pytest.fixture
def store(tmp_path):
    """RecordStore rooted in a fresh temp directory."""
    return RecordStore(tmp_path / "data")


@pytest.fixture
def clock():
    # 02:30 UTC == 08:00 Asia/Kolkata
    return FakeClock(datetime(2025, 1, 15, 2, 30, tzinfo=UTC))


@pytest.fixture
def summarizer():
    return FakeSummarizer()


@pytest.fixture
def registry(store, clock):
    return SubscriptionRegistry(store=store, clock=clock)


@pytest.fixture
def catalog(store, clock):
    return DigestCatalog(store=store, clock=clock)


@pytest.fixture
def pipeline(summarizer, catalog):
    return DigestGenerationPipeline(client=summarizer, catalog=catalog, timeout_seconds=5)
