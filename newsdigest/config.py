"""Centralized configuration for the NewsDigest backend.

Re-exports everything from newsdigest.infrastructure.settings, then adds typed
constants for categories, scheduling, retention, LLM and API settings.
Environment variable overrides use safe defaults so the app starts without
extra env configuration.
"""

from __future__ import annotations

import os

from newsdigest.infrastructure.settings import *  # noqa: F401, F403 - re-export settings

# --- App ---
APP_VERSION: str = "1.0.0"

# --- Categories ---
CATEGORIES: tuple[str, ...] = ("stock-market", "ai-updates", "geopolitics", "startups")

# --- Record store collections ---
SUBSCRIPTIONS_COLLECTION: str = "subscriptions"
DIGESTS_COLLECTION: str = "digests"
SCHEDULER_COLLECTION: str = "scheduler_state"

# --- LLM ---
# LLM_TIMEOUT_SECONDS bounds one whole generation, retries included. Each HTTP
# attempt gets LLM_REQUEST_TIMEOUT_SECONDS; every attempt plus the backoff
# between them (1s, 2s, ...) must fit inside the outer budget.
LLM_TIMEOUT_SECONDS: float = float(os.getenv("NEWSDIGEST_LLM_TIMEOUT", "60"))
LLM_REQUEST_TIMEOUT_SECONDS: float = float(os.getenv("NEWSDIGEST_LLM_REQUEST_TIMEOUT", "15"))
LLM_MAX_RETRIES: int = int(os.getenv("NEWSDIGEST_LLM_MAX_RETRIES", "3"))

# --- Scheduler ---
# 08:00 Asia/Kolkata == 02:30 UTC
DIGEST_TIME: str = os.getenv("NEWSDIGEST_DIGEST_TIME", "08:00")
DIGEST_TIMEZONE: str = os.getenv("NEWSDIGEST_DIGEST_TIMEZONE", "Asia/Kolkata")
SCHEDULER_ENABLED: bool = os.getenv("NEWSDIGEST_SCHEDULER_ENABLED", "true").lower() == "true"

# --- Retention ---
DIGEST_RETENTION_DAYS: int = int(os.getenv("NEWSDIGEST_RETENTION_DAYS", "30"))

# --- API ---
DIGEST_LIST_LIMIT_DEFAULT: int = 10
DIGEST_LIST_LIMIT_MAX: int = 100
