"""
Command-line entry points for one-off digest jobs.

    newsdigest generate                      # every category
    newsdigest generate -c ai-updates        # one or more categories
    newsdigest prune --days 30               # apply digest retention now
    newsdigest run-daily                     # the scheduled job, once

Exit status is 1 if any requested category failed.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from dotenv import load_dotenv

from newsdigest.config import CATEGORIES, DIGEST_RETENTION_DAYS
from newsdigest.digest.catalog import get_digest_catalog
from newsdigest.digest.models import Digest
from newsdigest.digest.pipeline import get_generation_pipeline
from newsdigest.digest.scheduler import DigestScheduler
from newsdigest.errors import StoreError
from newsdigest.observability.logging import get_logger

logger = get_logger(__name__)


async def _generate(categories: list[str]) -> int:
    outcomes = await get_generation_pipeline().generate_all(categories)
    failures = 0
    for category, outcome in outcomes.items():
        if isinstance(outcome, Digest):
            print(f"✓ {category}: {outcome.id} ({len(outcome.citations)} citations)")
        else:
            failures += 1
            print(f"✗ {category}: {outcome.reason}")
    return 1 if failures else 0


async def _prune(days: int) -> int:
    deleted = await get_digest_catalog().prune(days)
    print(f"Deleted {deleted} digests older than {days} days")
    return 0


async def _run_daily() -> int:
    outcomes = await DigestScheduler().run_daily()
    if outcomes is None:
        print("Already ran today, nothing to do")
        return 0
    return 1 if any(not isinstance(o, Digest) for o in outcomes.values()) else 0


def main(argv: list[str] | None = None) -> int:
    load_dotenv()

    parser = argparse.ArgumentParser(prog="newsdigest", description="NewsDigest digest jobs")
    subcommands = parser.add_subparsers(dest="command", required=True)

    generate = subcommands.add_parser("generate", help="Generate digests now")
    generate.add_argument(
        "-c",
        "--category",
        action="append",
        choices=CATEGORIES,
        help="Category to generate (repeatable, default: all)",
    )

    prune = subcommands.add_parser("prune", help="Delete digests past retention")
    prune.add_argument("--days", type=int, default=DIGEST_RETENTION_DAYS)

    subcommands.add_parser("run-daily", help="Run the scheduled daily job once")

    args = parser.parse_args(argv)

    try:
        if args.command == "generate":
            return asyncio.run(_generate(args.category or list(CATEGORIES)))
        if args.command == "prune":
            return asyncio.run(_prune(args.days))
        return asyncio.run(_run_daily())
    except StoreError as e:
        logger.error("Record store failure: %s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
