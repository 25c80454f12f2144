"""Flashcard collection management."""
import logging
from datetime import datetime

from srs_tutor import store
from srs_tutor.config import (
    BACK_MAX_LENGTH, FRONT_MAX_LENGTH, MAX_BATCH_SIZE, PAGE_DEFAULT_LIMIT, PAGE_MAX_LIMIT,
)
from srs_tutor.db import get_connection, to_db_timestamp, utcnow
from srs_tutor.errors import CardNotFoundError, ValidationError
from srs_tutor.models import DEFAULT_EASE_FACTOR, Flashcard, FlashcardPage

logger = logging.getLogger(__name__)

SOURCES = ("manual", "ai_generated")
SORT_FIELDS = ("created_at", "updated_at", "next_review_date")
SORT_ORDERS = ("asc", "desc")


def _clean_text(value, name: str, max_length: int) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} text is required")
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(f"{name} text must be at most {max_length} characters")
    return value


def validate_card(card: dict) -> dict:
    """Check one {front, back, source} item and return a cleaned copy."""
    source = card.get("source", "manual")
    if source not in SOURCES:
        raise ValidationError("Source must be 'ai_generated' or 'manual'")
    return {
        "front": _clean_text(card.get("front"), "Front", FRONT_MAX_LENGTH),
        "back": _clean_text(card.get("back"), "Back", BACK_MAX_LENGTH),
        "source": source,
    }


def insert_flashcards(conn, user_id: str, cards: list[dict], now: datetime | None = None) -> list[Flashcard]:
    """Validate and insert a batch on an open connection. The caller commits."""
    if not cards:
        raise ValidationError("At least one flashcard is required")
    if len(cards) > MAX_BATCH_SIZE:
        raise ValidationError(f"Maximum {MAX_BATCH_SIZE} flashcards can be created at once")
    cleaned = [validate_card(c) for c in cards]
    stamp = to_db_timestamp(now or utcnow())

    ids = []
    for card in cleaned:
        cursor = conn.execute(
            """INSERT INTO flashcards
            (user_id, front, back, source, ease_factor, interval, repetition_count,
             next_review_date, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, 0, 0, ?, ?, ?)""",
            (user_id, card["front"], card["back"], card["source"], DEFAULT_EASE_FACTOR, stamp, stamp, stamp),
        )
        ids.append(cursor.lastrowid)
    rows = conn.execute(
        f"SELECT {store.FLASHCARD_COLUMNS} FROM flashcards WHERE id IN ({','.join('?' * len(ids))}) ORDER BY id",
        ids,
    ).fetchall()
    return [store.row_to_flashcard(r) for r in rows]


def create_flashcards(db_path: str, user_id: str, cards: list[dict], now: datetime | None = None) -> list[Flashcard]:
    """Insert a batch of new cards with default SM-2 state, due immediately."""
    with store.transaction(db_path) as conn:
        created = insert_flashcards(conn, user_id, cards, now=now)
    logger.info("Created %d flashcards for user %s", len(created), user_id)
    return created


def get_flashcard(db_path: str, user_id: str, card_id: int) -> Flashcard:
    conn = get_connection(db_path)
    row = conn.execute(
        f"SELECT {store.FLASHCARD_COLUMNS} FROM flashcards WHERE id = ? AND user_id = ?",
        (card_id, user_id),
    ).fetchone()
    conn.close()
    if row is None:
        raise CardNotFoundError(card_id)
    return store.row_to_flashcard(row)


def list_flashcards(
    db_path: str,
    user_id: str,
    page: int = 1,
    limit: int = PAGE_DEFAULT_LIMIT,
    sort: str = "created_at",
    order: str = "desc",
) -> FlashcardPage:
    """Return one page of the user's cards with pagination metadata."""
    if not isinstance(page, int) or page < 1:
        raise ValidationError("Page must be at least 1")
    if not isinstance(limit, int) or not 1 <= limit <= PAGE_MAX_LIMIT:
        raise ValidationError(f"Limit must be between 1 and {PAGE_MAX_LIMIT}")
    if sort not in SORT_FIELDS:
        raise ValidationError(f"Sort must be one of: {', '.join(SORT_FIELDS)}")
    if order not in SORT_ORDERS:
        raise ValidationError("Order must be 'asc' or 'desc'")

    conn = get_connection(db_path)
    total = conn.execute("SELECT COUNT(*) FROM flashcards WHERE user_id = ?", (user_id,)).fetchone()[0]
    # sort/order are whitelisted above
    rows = conn.execute(
        f"""SELECT {store.FLASHCARD_COLUMNS} FROM flashcards
        WHERE user_id = ?
        ORDER BY {sort} {order.upper()}, id {order.upper()}
        LIMIT ? OFFSET ?""",
        (user_id, limit, (page - 1) * limit),
    ).fetchall()
    conn.close()
    return FlashcardPage(
        cards=[store.row_to_flashcard(r) for r in rows], page=page, limit=limit, total=total,
    )


def update_flashcard(
    db_path: str,
    user_id: str,
    card_id: int,
    front: str | None = None,
    back: str | None = None,
    now: datetime | None = None,
) -> Flashcard:
    """Edit card text. Scheduling state is left as is."""
    if front is None and back is None:
        raise ValidationError("At least one field (front or back) must be provided")
    updates = {}
    if front is not None:
        updates["front"] = _clean_text(front, "Front", FRONT_MAX_LENGTH)
    if back is not None:
        updates["back"] = _clean_text(back, "Back", BACK_MAX_LENGTH)
    updates["updated_at"] = to_db_timestamp(now or utcnow())

    assignments = ", ".join(f"{column}=?" for column in updates)
    with store.transaction(db_path) as conn:
        cursor = conn.execute(
            f"UPDATE flashcards SET {assignments} WHERE id=? AND user_id=?",
            (*updates.values(), card_id, user_id),
        )
        if cursor.rowcount == 0:
            raise CardNotFoundError(card_id)
        row = conn.execute(
            f"SELECT {store.FLASHCARD_COLUMNS} FROM flashcards WHERE id = ?", (card_id,),
        ).fetchone()
    return store.row_to_flashcard(row)


def delete_flashcard(db_path: str, user_id: str, card_id: int) -> None:
    """Hard delete a card together with its review history."""
    with store.transaction(db_path) as conn:
        cursor = conn.execute("DELETE FROM flashcards WHERE id = ? AND user_id = ?", (card_id, user_id))
        if cursor.rowcount == 0:
            raise CardNotFoundError(card_id)
    logger.info("Deleted flashcard %s", card_id)
