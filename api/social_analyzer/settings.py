"""Environment-driven settings for the analyzer.

Loads .env on import. No package imports here: everything else imports this module.
"""

from __future__ import annotations

import os
from decimal import Decimal, InvalidOperation

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _decimal_env(name: str, default: str) -> Decimal:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return Decimal(default)
    try:
        return Decimal(raw)
    except InvalidOperation:
        return Decimal(default)


LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# Upserts that lose a per-post race are retried this many times in total
# before Conflict reaches the caller.
ANALYSIS_UPSERT_MAX_ATTEMPTS: int = max(1, _int_env("ANALYSIS_UPSERT_MAX_ATTEMPTS", 3))

# Sentiment strictly below this value triggers a "Very negative sentiment detected" entry.
NEGATIVE_SENTIMENT_THRESHOLD: Decimal = _decimal_env("NEGATIVE_SENTIMENT_THRESHOLD", "-0.80")

# Whether the very first analysis for a post may trigger the negative-sentiment entry.
# Off by default: only updates of an existing analysis are inspected.
AUDIT_NEGATIVE_SENTIMENT_ON_INSERT: bool = _bool_env("AUDIT_NEGATIVE_SENTIMENT_ON_INSERT", False)

# Whether posts removed by a user deletion get their own "Post deleted" entry.
AUDIT_CASCADED_POST_DELETIONS: bool = _bool_env("AUDIT_CASCADED_POST_DELETIONS", True)

READABILITY_MIN: Decimal = _decimal_env("READABILITY_MIN", "0.00")
READABILITY_MAX: Decimal = _decimal_env("READABILITY_MAX", "100.00")

# Redis cache for aggregate queries. Unset disables caching entirely.
REDIS_URL: str | None = os.getenv("REDIS_URL") or None
USER_ANALYTICS_CACHE_TTL: int = _int_env("USER_ANALYTICS_CACHE_TTL", 300)

# Dotted path ("package.module:callable") of the external scoring function.
ANALYZER_SCORER: str | None = os.getenv("ANALYZER_SCORER") or None

AUTO_MIGRATE: bool = _bool_env("AUTO_MIGRATE", True)
SEED_DEFAULT_TAGS: bool = _bool_env("SEED_DEFAULT_TAGS", True)
