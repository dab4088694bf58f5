"""
Daily digest scheduler.

Fires ``generate_all`` over every category once a day at a configured
wall-clock time in a configured timezone (default 08:00 Asia/Kolkata). Runs on
APScheduler's AsyncIOScheduler inside the API process.

Fires missed while the process was down are not replayed. The local date of
the last fire is persisted in the ``scheduler_state`` collection and checked
before each run, so a restart around the trigger time cannot fire twice on
the same day. Manual generation through the API is independent of this.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from newsdigest.config import (
    CATEGORIES,
    DIGEST_RETENTION_DAYS,
    DIGEST_TIME,
    DIGEST_TIMEZONE,
    SCHEDULER_COLLECTION,
)
from newsdigest.digest.delivery import DigestDelivery
from newsdigest.digest.models import Digest, utc_now
from newsdigest.digest.pipeline import (
    DigestGenerationPipeline,
    GenerationOutcome,
    get_generation_pipeline,
)
from newsdigest.errors import StoreError
from newsdigest.observability.logging import get_logger
from newsdigest.observability.telemetry import counter, log_event
from newsdigest.storage.record_store import Record, RecordStore, get_record_store

logger = get_logger(__name__)

JOB_ID = "daily-digest"

# A loop that is briefly busy at trigger time should still fire
MISFIRE_GRACE_SECONDS = 300


def parse_time_of_day(value: str) -> tuple[int, int]:
    """
    Parse ``"HH:MM"`` (24h) into ``(hour, minute)``.

    Raises:
        ValueError: malformed or out-of-range time
    """
    try:
        hour_text, minute_text = value.strip().split(":")
        hour, minute = int(hour_text), int(minute_text)
    except ValueError:
        raise ValueError(f"Invalid time of day {value!r}, expected HH:MM") from None
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Invalid time of day {value!r}, expected HH:MM")
    return hour, minute


class DigestScheduler:
    """Owns the APScheduler instance and the daily generation job."""

    def __init__(
        self,
        pipeline: DigestGenerationPipeline | None = None,
        store: RecordStore | None = None,
        delivery: DigestDelivery | None = None,
        digest_time: str = DIGEST_TIME,
        timezone: str = DIGEST_TIMEZONE,
        retention_days: int = DIGEST_RETENTION_DAYS,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.pipeline = pipeline or get_generation_pipeline()
        self.store = store or get_record_store()
        self.delivery = delivery or DigestDelivery()
        self.hour, self.minute = parse_time_of_day(digest_time)
        self.timezone = ZoneInfo(timezone)
        self.retention_days = retention_days
        self.clock = clock
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        """
        Start the scheduler. Must be called from a running event loop.

        Side Effects:
            - Registers the daily cron job
        """
        if self.running:
            return

        scheduler = AsyncIOScheduler(timezone=self.timezone)
        scheduler.add_job(
            self.run_daily,
            CronTrigger(hour=self.hour, minute=self.minute, timezone=self.timezone),
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=MISFIRE_GRACE_SECONDS,
            replace_existing=True,
        )
        scheduler.start()
        self._scheduler = scheduler

        logger.info(
            "Digest scheduler started: daily at %02d:%02d %s",
            self.hour,
            self.minute,
            self.timezone.key,
        )

    def shutdown(self) -> None:
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Digest scheduler stopped")
        self._scheduler = None

    def next_run_time(self) -> datetime | None:
        if self._scheduler is None:
            return None
        job = self._scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None

    async def _claim_today(self) -> str | None:
        """Record today's fire; returns the local date, or None if it already fired today."""
        today = self.clock().astimezone(self.timezone).date().isoformat()
        fired_at = self.clock().isoformat()

        def claim(records: list[Record]) -> bool:
            for record in records:
                if record.get("job") == JOB_ID:
                    if record.get("lastFiredOn") == today:
                        return False
                    record["lastFiredOn"] = today
                    record["lastFiredAt"] = fired_at
                    return True
            records.append({"job": JOB_ID, "lastFiredOn": today, "lastFiredAt": fired_at})
            return True

        claimed = await self.store.mutate(SCHEDULER_COLLECTION, claim)
        return today if claimed else None

    async def run_daily(self) -> dict[str, GenerationOutcome] | None:
        """
        The scheduled job: generate every category, deliver successes, prune.

        Never raises for per-category problems; returns the outcome map, or
        None when today's run already happened.
        """
        try:
            today = await self._claim_today()
        except StoreError as e:
            logger.error("Could not record scheduler state, skipping run: %s", e)
            counter("scheduler.state_errors")
            return None

        if today is None:
            logger.info("Daily digest already generated today, skipping")
            counter("scheduler.skipped")
            return None

        logger.info("Running daily digest generation for %s", today)
        counter("scheduler.fired")

        outcomes = await self.pipeline.generate_all(CATEGORIES)

        for category, outcome in outcomes.items():
            if not isinstance(outcome, Digest):
                logger.error("Error generating digest for %s: %s", category, outcome)
                continue
            logger.info("Digest generated for %s", category)
            try:
                await self.delivery.send(outcome)
            except StoreError as e:
                logger.error("Could not load subscribers for %s: %s", category, e)

        try:
            await self.pipeline.catalog.prune(self.retention_days)
        except StoreError as e:
            logger.error("Digest retention pruning failed: %s", e)

        log_event(
            "scheduler.run_complete",
            date=today,
            succeeded=[c for c, o in outcomes.items() if isinstance(o, Digest)],
        )
        return outcomes
