"""AI flashcard generation sessions.

The text-to-flashcard service itself is injected as a callable; this
module validates input, enforces the per-user rate limit and keeps the
generation history (generated vs. accepted counts).
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from srs_tutor import store
from srs_tutor.config import (
    PAGE_DEFAULT_LIMIT, PAGE_MAX_LIMIT, SOURCE_TEXT_MAX_LENGTH, SOURCE_TEXT_MIN_LENGTH,
)
from srs_tutor.db import from_db_timestamp, get_connection, to_db_timestamp, utcnow
from srs_tutor.errors import GenerationNotFoundError, RateLimitExceeded, ValidationError
from srs_tutor.flashcards import insert_flashcards
from srs_tutor.models import Flashcard, GenerationSession, GenerationSessionPage, GenerationSummary
from srs_tutor.rate_limit import RateLimiter, generations_key, generations_limiter

logger = logging.getLogger(__name__)


@dataclass
class Proposal:
    front: str
    back: str


@dataclass
class GenerationResult:
    generation_id: int
    proposals: list[Proposal]

    @property
    def generated_count(self) -> int:
        return len(self.proposals)


FlashcardGenerator = Callable[[str], list[Proposal]]


def validate_source_text(source_text) -> str:
    if not isinstance(source_text, str):
        raise ValidationError("Source text is required")
    if len(source_text) < SOURCE_TEXT_MIN_LENGTH:
        raise ValidationError(f"Source text must be at least {SOURCE_TEXT_MIN_LENGTH} characters")
    if len(source_text) > SOURCE_TEXT_MAX_LENGTH:
        raise ValidationError(f"Source text must be at most {SOURCE_TEXT_MAX_LENGTH} characters")
    return source_text


def generate_proposals(
    db_path: str,
    user_id: str,
    source_text: str,
    generator: FlashcardGenerator,
    limiter: RateLimiter | None = None,
    now: datetime | None = None,
) -> GenerationResult:
    """Run the generator over source_text and record the session.

    Proposals are returned, not saved; see accept_proposals. If the
    generator raises, the session stays with generated_count = 0.
    """
    validate_source_text(source_text)
    now = now or utcnow()
    limiter = limiter or generations_limiter(db_path)
    key = generations_key(user_id)
    if not limiter.check(key, now=now):
        raise RateLimitExceeded(key, limiter.info(key, now=now).reset_at)

    with store.transaction(db_path) as conn:
        cursor = conn.execute(
            "INSERT INTO generation_sessions (user_id, source_text, created_at) VALUES (?, ?, ?)",
            (user_id, source_text, to_db_timestamp(now)),
        )
        generation_id = cursor.lastrowid
    logger.info("Generation session %s started for user %s", generation_id, user_id)

    proposals = list(generator(source_text))

    conn = get_connection(db_path)
    conn.execute(
        "UPDATE generation_sessions SET generated_count = ? WHERE id = ?",
        (len(proposals), generation_id),
    )
    conn.commit()
    conn.close()
    return GenerationResult(generation_id=generation_id, proposals=proposals)


def _add_accepted(conn, user_id: str, generation_id: int, count: int) -> None:
    conn.execute(
        "UPDATE generation_sessions SET accepted_count = accepted_count + ? WHERE id = ? AND user_id = ?",
        (count, generation_id, user_id),
    )


def accept_proposals(
    db_path: str,
    user_id: str,
    generation_id: int,
    proposals: list[Proposal],
    now: datetime | None = None,
) -> list[Flashcard]:
    """Save the proposals the user kept (possibly edited) as ai_generated cards.

    The cards and the session's accepted_count are written in one
    transaction; if either step fails neither is kept.
    """
    with store.transaction(db_path) as conn:
        row = conn.execute(
            "SELECT id FROM generation_sessions WHERE id = ? AND user_id = ?", (generation_id, user_id),
        ).fetchone()
        if row is None:
            raise GenerationNotFoundError(generation_id)
        cards = insert_flashcards(
            conn,
            user_id,
            [{"front": p.front, "back": p.back, "source": "ai_generated"} for p in proposals],
            now=now,
        )
        _add_accepted(conn, user_id, generation_id, len(cards))
    logger.info("Accepted %d proposals from generation %s", len(cards), generation_id)
    return cards


def _row_to_session(row) -> GenerationSession:
    return GenerationSession(
        id=row["id"],
        user_id=row["user_id"],
        source_text=row["source_text"],
        generated_count=row["generated_count"],
        accepted_count=row["accepted_count"],
        created_at=from_db_timestamp(row["created_at"]),
    )


def get_generation_session(db_path: str, user_id: str, generation_id: int) -> GenerationSession:
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT * FROM generation_sessions WHERE id = ? AND user_id = ?", (generation_id, user_id),
    ).fetchone()
    conn.close()
    if row is None:
        raise GenerationNotFoundError(generation_id)
    return _row_to_session(row)


def get_generation_summary(db_path: str, user_id: str) -> GenerationSummary:
    """Totals over all of the user's generation sessions."""
    conn = get_connection(db_path)
    row = conn.execute(
        """SELECT COALESCE(SUM(generated_count), 0) as generated,
            COALESCE(SUM(accepted_count), 0) as accepted
        FROM generation_sessions WHERE user_id = ?""",
        (user_id,),
    ).fetchone()
    conn.close()
    return GenerationSummary(total_generated=row["generated"], total_accepted=row["accepted"])


def list_generation_sessions(
    db_path: str, user_id: str, page: int = 1, limit: int = PAGE_DEFAULT_LIMIT,
) -> GenerationSessionPage:
    """One page of the user's sessions, newest first, with the acceptance summary."""
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise ValidationError("Page must be at least 1")
    if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= PAGE_MAX_LIMIT:
        raise ValidationError(f"Limit must be between 1 and {PAGE_MAX_LIMIT}")

    conn = get_connection(db_path)
    total = conn.execute("SELECT COUNT(*) FROM generation_sessions WHERE user_id = ?", (user_id,)).fetchone()[0]
    rows = conn.execute(
        """SELECT * FROM generation_sessions WHERE user_id = ?
        ORDER BY created_at DESC, id DESC
        LIMIT ? OFFSET ?""",
        (user_id, limit, (page - 1) * limit),
    ).fetchall()
    conn.close()
    return GenerationSessionPage(
        sessions=[_row_to_session(r) for r in rows],
        page=page,
        limit=limit,
        total=total,
        summary=get_generation_summary(db_path, user_id),
    )
