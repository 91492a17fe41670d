"""
Submission Rate Limiter
=======================

Throttles public form submissions per (form type, submitter email):
- RATE_LIMIT_MAX_ATTEMPTS submissions per RATE_LIMIT_WINDOW_SECONDS
- Counter resets once the window has elapsed since the last attempt

Design:
- State lives in the `rate_limits` table (survives gateway restarts)
- Checked AFTER validation, BEFORE duplicate checks and inserts

Known limitation:
- Read-then-write; two concurrent submissions with the same key can both
  pass the check. The limit is advisory, not a hard guarantee.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from dateutil import parser as date_parser

from tapt_gateway import config
from tapt_gateway.db.store import RowStore
from tapt_gateway.errors import RateLimited

logger = logging.getLogger(__name__)

RATE_LIMIT_TABLE = "rate_limits"


def make_key(form_type: str, identity: str) -> str:
    """Rate limit key, e.g. "membership:jane@example.org"."""
    return f"{form_type}:{identity.strip().lower()}"


def _parse_timestamp(value) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    # Handles "Z" suffix and non-standard fractional precision from Postgres
    return date_parser.isoparse(value)


def check_and_record(store: RowStore, key: str, now: datetime,
                     window_seconds: int = None, max_attempts: int = None) -> int:
    """
    Check the rate limit for `key` and record this attempt.

    Args:
        store: Row store
        key: "{form-type}:{identity}"
        now: Current time (timezone-aware UTC)
        window_seconds: Rolling window (default config.RATE_LIMIT_WINDOW_SECONDS)
        max_attempts: Attempts allowed inside the window (default config.RATE_LIMIT_MAX_ATTEMPTS)

    Returns:
        The attempt count recorded for the current window.

    Raises:
        RateLimited: if `max_attempts` were already made inside the window
            (no write is performed in that case)
    """
    if window_seconds is None:
        window_seconds = config.RATE_LIMIT_WINDOW_SECONDS
    if max_attempts is None:
        max_attempts = config.RATE_LIMIT_MAX_ATTEMPTS

    existing = store.select_one(RATE_LIMIT_TABLE, [("key", "eq", key)], columns="key, count, last_attempt")

    count = 1
    if existing:
        last_attempt = _parse_timestamp(existing.get("last_attempt"))
        in_window = last_attempt is not None and now - last_attempt < timedelta(seconds=window_seconds)
        previous = int(existing.get("count") or 0)

        if in_window and previous >= max_attempts:
            logger.warning(f"⚠️  Rate limit hit for {key} ({previous}/{max_attempts})")
            retry_after = int((last_attempt + timedelta(seconds=window_seconds) - now).total_seconds())
            raise RateLimited(retry_after=max(retry_after, 1))

        count = previous + 1 if in_window else 1

    store.upsert(
        RATE_LIMIT_TABLE,
        {"key": key, "count": count, "last_attempt": now.isoformat()},
        on_conflict="key",
    )
    logger.debug(f"Rate limit {key}: {count}/{max_attempts}")
    return count
