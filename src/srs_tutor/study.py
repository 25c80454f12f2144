"""Study sessions: due-card selection and review recording."""
import logging
from datetime import datetime

from srs_tutor import store
from srs_tutor.config import SESSION_DEFAULT_LIMIT, SESSION_MAX_LIMIT
from srs_tutor.db import as_utc, utcnow
from srs_tutor.errors import CardNotFoundError, ValidationError
from srs_tutor.models import DueSession, Flashcard, SchedulingResult
from srs_tutor.sm2 import compute_next_state, validate_rating

logger = logging.getLogger(__name__)


def _validate_limit(limit, maximum: int | None = None) -> int:
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValidationError(f"Limit must be a positive integer, got {limit!r}")
    if maximum is not None and limit > maximum:
        raise ValidationError(f"Limit must be between 1 and {maximum}, got {limit}")
    return limit


def select_due_cards(db_path: str, user_id: str, now: datetime, limit: int) -> tuple[list[Flashcard], int]:
    """Return up to `limit` due cards (most overdue first) and the total due count.

    Cards are due when next_review_date <= now. The returned list is a
    prefix of the full ordered due set, so total_due >= len(cards).
    """
    _validate_limit(limit)
    now = as_utc(now)
    with store.transaction(db_path, "DEFERRED") as conn:
        total_due = store.count_due(conn, user_id, now)
        cards = store.fetch_due(conn, user_id, now, limit) if total_due else []
    logger.debug("User %s has %d due cards, returning %d", user_id, total_due, len(cards))
    return cards, total_due


def get_due_session(
    db_path: str, user_id: str, limit: int = SESSION_DEFAULT_LIMIT, now: datetime | None = None,
) -> DueSession:
    _validate_limit(limit, SESSION_MAX_LIMIT)
    cards, total_due = select_due_cards(db_path, user_id, now or utcnow(), limit)
    return DueSession(cards=cards, total_due=total_due)


def review(
    db_path: str, user_id: str, card_id: int, rating: int, now: datetime | None = None,
) -> SchedulingResult:
    """Apply one review to a card and persist the new scheduling state.

    Raises:
        ValidationError: rating is not an integer in 0-5.
        CardNotFoundError: no card with this id belongs to user_id.
    """
    validate_rating(rating)
    now = as_utc(now or utcnow())
    with store.transaction(db_path) as conn:
        current = store.fetch_scheduling_state(conn, card_id, user_id)
        if current is None:
            raise CardNotFoundError(card_id)
        result = compute_next_state(current, rating, now)
        if store.update_scheduling_state(conn, card_id, user_id, result) is None:
            raise CardNotFoundError(card_id)
        store.log_review(conn, card_id, user_id, rating, now)
    logger.info(
        "Card %s rated %d: interval=%d reps=%d ef=%.2f",
        card_id, rating, result.interval, result.repetition_count, result.ease_factor,
    )
    return result
