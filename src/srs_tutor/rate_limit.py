"""Fixed-window rate limiting backed by the rate_limits table.

Each key owns one window: a counter and the instant it expires. The first
call after expiry opens a fresh window.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from srs_tutor import store
from srs_tutor.config import GENERATIONS_RATE_LIMIT, GENERATIONS_RATE_WINDOW
from srs_tutor.db import as_utc, from_db_timestamp, get_connection, to_db_timestamp, utcnow

logger = logging.getLogger(__name__)


@dataclass
class RateLimitInfo:
    remaining: int
    reset_at: datetime
    is_limited: bool


class RateLimiter:
    def __init__(self, db_path: str, limit: int, window: timedelta):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.db_path = db_path
        self.limit = limit
        self.window = window

    def check(self, key: str, now: datetime | None = None) -> bool:
        """Consume one slot for key. Returns False once the window is full."""
        now = as_utc(now or utcnow())
        with store.transaction(self.db_path) as conn:
            row = conn.execute("SELECT count, reset_at FROM rate_limits WHERE key = ?", (key,)).fetchone()
            if row is None or now > from_db_timestamp(row["reset_at"]):
                conn.execute(
                    """INSERT INTO rate_limits (key, count, reset_at) VALUES (?, 1, ?)
                    ON CONFLICT(key) DO UPDATE SET count=1, reset_at=excluded.reset_at""",
                    (key, to_db_timestamp(now + self.window)),
                )
                return True
            if row["count"] >= self.limit:
                logger.warning("Rate limit reached for %s", key)
                return False
            conn.execute("UPDATE rate_limits SET count = count + 1 WHERE key = ?", (key,))
            return True

    def info(self, key: str, now: datetime | None = None) -> RateLimitInfo:
        now = as_utc(now or utcnow())
        conn = get_connection(self.db_path)
        row = conn.execute("SELECT count, reset_at FROM rate_limits WHERE key = ?", (key,)).fetchone()
        conn.close()
        if row is None or now > from_db_timestamp(row["reset_at"]):
            return RateLimitInfo(remaining=self.limit, reset_at=now + self.window, is_limited=False)
        return RateLimitInfo(
            remaining=max(0, self.limit - row["count"]),
            reset_at=from_db_timestamp(row["reset_at"]),
            is_limited=row["count"] >= self.limit,
        )

    def purge_expired(self, now: datetime | None = None) -> int:
        with store.transaction(self.db_path) as conn:
            cursor = conn.execute(
                "DELETE FROM rate_limits WHERE reset_at < ?", (to_db_timestamp(now or utcnow()),),
            )
        return cursor.rowcount


def generations_limiter(db_path: str) -> RateLimiter:
    return RateLimiter(db_path, GENERATIONS_RATE_LIMIT, GENERATIONS_RATE_WINDOW)


def generations_key(user_id: str) -> str:
    return f"generations:{user_id}"
