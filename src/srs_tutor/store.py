"""User-scoped record store for per-card scheduling state.

Every function takes an open connection so that callers can run a
read-modify-write inside one `transaction()`. All queries filter on the
owning user; a card id alone never addresses a row.
"""
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator

from srs_tutor.db import from_db_timestamp, get_connection, to_db_timestamp
from srs_tutor.models import CardSchedulingState, Flashcard, SchedulingResult

logger = logging.getLogger(__name__)

FLASHCARD_COLUMNS = (
    "id, user_id, front, back, source, ease_factor, interval, repetition_count, "
    "next_review_date, last_reviewed_at, created_at, updated_at"
)


@contextmanager
def transaction(db_path: str, mode: str = "IMMEDIATE") -> Iterator[sqlite3.Connection]:
    """Yield a connection running inside one transaction until commit.

    The default IMMEDIATE mode takes the write lock before the first read,
    so concurrent reviews of the same card are serialized by SQLite.
    DEFERRED gives a consistent read snapshot without blocking writers.
    """
    conn = get_connection(db_path)
    conn.isolation_level = None
    try:
        conn.execute(f"BEGIN {mode}")
        yield conn
        conn.execute("COMMIT")
    except Exception:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise
    finally:
        conn.close()


def row_to_flashcard(row: sqlite3.Row) -> Flashcard:
    return Flashcard(
        id=row["id"],
        user_id=row["user_id"],
        front=row["front"],
        back=row["back"],
        source=row["source"],
        ease_factor=row["ease_factor"],
        interval=row["interval"],
        repetition_count=row["repetition_count"],
        next_review_date=from_db_timestamp(row["next_review_date"]),
        last_reviewed_at=from_db_timestamp(row["last_reviewed_at"]),
        created_at=from_db_timestamp(row["created_at"]),
        updated_at=from_db_timestamp(row["updated_at"]),
    )


def fetch_scheduling_state(conn: sqlite3.Connection, card_id: int, user_id: str) -> CardSchedulingState | None:
    row = conn.execute(
        """SELECT id, ease_factor, interval, repetition_count, next_review_date, last_reviewed_at
        FROM flashcards WHERE id = ? AND user_id = ?""",
        (card_id, user_id),
    ).fetchone()
    if row is None:
        return None
    return CardSchedulingState(
        ease_factor=row["ease_factor"],
        interval=row["interval"],
        repetition_count=row["repetition_count"],
        next_review_date=from_db_timestamp(row["next_review_date"]),
        last_reviewed_at=from_db_timestamp(row["last_reviewed_at"]),
        card_id=row["id"],
    )


def update_scheduling_state(
    conn: sqlite3.Connection, card_id: int, user_id: str, result: SchedulingResult,
) -> SchedulingResult | None:
    """Write a review result; returns None when no row matched."""
    cursor = conn.execute(
        """UPDATE flashcards
        SET ease_factor=?, interval=?, repetition_count=?, next_review_date=?, last_reviewed_at=?
        WHERE id=? AND user_id=?""",
        (
            result.ease_factor,
            result.interval,
            result.repetition_count,
            to_db_timestamp(result.next_review_date),
            to_db_timestamp(result.last_reviewed_at),
            card_id,
            user_id,
        ),
    )
    if cursor.rowcount == 0:
        return None
    logger.debug("Updated scheduling state for card %s", card_id)
    return result


def log_review(conn: sqlite3.Connection, card_id: int, user_id: str, rating: int, reviewed_at: datetime) -> None:
    conn.execute(
        "INSERT INTO review_log (flashcard_id, user_id, rating, reviewed_at) VALUES (?, ?, ?, ?)",
        (card_id, user_id, rating, to_db_timestamp(reviewed_at)),
    )


def count_due(conn: sqlite3.Connection, user_id: str, now: datetime) -> int:
    return conn.execute(
        "SELECT COUNT(*) FROM flashcards WHERE user_id = ? AND next_review_date <= ?",
        (user_id, to_db_timestamp(now)),
    ).fetchone()[0]


def fetch_due(conn: sqlite3.Connection, user_id: str, now: datetime, limit: int) -> list[Flashcard]:
    """Due cards, most overdue first."""
    rows = conn.execute(
        f"""SELECT {FLASHCARD_COLUMNS} FROM flashcards
        WHERE user_id = ? AND next_review_date <= ?
        ORDER BY next_review_date ASC, id ASC
        LIMIT ?""",
        (user_id, to_db_timestamp(now), limit),
    ).fetchall()
    return [row_to_flashcard(r) for r in rows]
