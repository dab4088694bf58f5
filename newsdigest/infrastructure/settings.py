"""
Application-wide settings and environment configuration

Secrets (PERPLEXITY_API_KEY, NEWSDIGEST_ADMIN_API_KEY) and AUTH_ISSUER_URL
are read where they are used, at call time, not here.
"""

from __future__ import annotations

import os
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Environment
ENV = os.getenv("NEWSDIGEST_ENV", "development")

# API Configuration
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "3000"))
LOG_LEVEL = os.getenv("NEWSDIGEST_LOG_LEVEL", "INFO")

# Record store (one JSON file per collection)
DATA_DIR = Path(os.getenv("NEWSDIGEST_DATA_DIR", str(PROJECT_ROOT / "data")))

# Perplexity (summarization collaborator)
PERPLEXITY_API_URL = os.getenv("PERPLEXITY_API_URL", "https://api.perplexity.ai/chat/completions")
PERPLEXITY_MODEL = os.getenv("PERPLEXITY_MODEL", "sonar")
PERPLEXITY_MAX_TOKENS = int(os.getenv("PERPLEXITY_MAX_TOKENS", "1000"))
PERPLEXITY_TEMPERATURE = float(os.getenv("PERPLEXITY_TEMPERATURE", "0.3"))


def is_development() -> bool:
    """Check if running in development"""
    return ENV == "development"
