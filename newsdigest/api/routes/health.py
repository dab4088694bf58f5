"""Health check endpoint for NewsDigest API."""

from __future__ import annotations

import os
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

from newsdigest.config import APP_VERSION
from newsdigest.observability.telemetry import snapshot

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Liveness probe.

    Also reports whether the summarization key is present (no API call)
    and the in-process counters and latencies.
    """
    return {
        "status": "ok",
        "service": "NewsDigest API",
        "version": APP_VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
        "llm": {"ready": bool(os.getenv("PERPLEXITY_API_KEY"))},
        "metrics": snapshot(),
    }
