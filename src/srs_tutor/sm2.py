"""SM-2 spaced repetition algorithm."""
import math
from datetime import datetime, timedelta
from enum import IntEnum

from srs_tutor.config import MAX_INTERVAL_DAYS
from srs_tutor.errors import ValidationError
from srs_tutor.models import MIN_EASE_FACTOR, CardSchedulingState, SchedulingResult


class Rating(IntEnum):
    """Recall quality scale shown to the learner."""

    BLACKOUT = 0
    INCORRECT = 1
    FAMILIAR = 2
    HARD = 3
    GOOD = 4
    PERFECT = 5

    @property
    def label(self) -> str:
        return RATING_LABELS[self]

    @property
    def passed(self) -> bool:
        return self >= PASSING_RATING


RATING_LABELS = {
    Rating.BLACKOUT: "Total blackout",
    Rating.INCORRECT: "Incorrect, recognized on seeing answer",
    Rating.FAMILIAR: "Incorrect, but answer felt familiar",
    Rating.HARD: "Correct with serious difficulty",
    Rating.GOOD: "Correct with hesitation",
    Rating.PERFECT: "Perfect recall",
}

PASSING_RATING = 3


def validate_rating(rating) -> int:
    """Return rating unchanged if it is an integer in 0-5, else raise ValidationError."""
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError(f"Rating must be an integer, got {rating!r}")
    if not Rating.BLACKOUT <= rating <= Rating.PERFECT:
        raise ValidationError(f"Rating must be between 0 and 5, got {rating}")
    return rating


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def next_interval(rating: int, repetition_count: int, interval: int, ease_factor: float) -> tuple[int, int]:
    """Compute (interval, repetition_count) after a review.

    ease_factor must be the value from before this review. The interval is
    capped at MAX_INTERVAL_DAYS so the next review date stays representable.
    """
    if rating < PASSING_RATING:
        return 1, 0
    repetition_count += 1
    if repetition_count == 1:
        return 1, repetition_count
    if repetition_count == 2:
        return 6, repetition_count
    return min(round_half_up(interval * ease_factor), MAX_INTERVAL_DAYS), repetition_count


def update_ease_factor(ease_factor: float, rating: int) -> float:
    """EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), floored at 1.3."""
    miss = Rating.PERFECT - rating
    new_ef = ease_factor + (0.1 - miss * (0.08 + miss * 0.02))
    return max(MIN_EASE_FACTOR, new_ef)


def compute_next_state(current: CardSchedulingState, rating: int, now: datetime) -> SchedulingResult:
    """Calculate the next scheduling state using SM-2.

    Args:
        current: Scheduling state before the review. Only ease_factor,
            interval and repetition_count are read.
        rating: Recall quality 0-5 (0=total blackout, 5=perfect recall).
        now: Review instant; the next review is exactly `interval` days later.

    Returns:
        SchedulingResult with the updated state.

    Raises:
        ValidationError: rating is not an integer in 0-5.
    """
    validate_rating(rating)

    # Interval first, from the pre-review ease factor
    interval, repetition_count = next_interval(
        rating, current.repetition_count, current.interval, current.ease_factor,
    )
    ease_factor = update_ease_factor(current.ease_factor, rating)

    return SchedulingResult(
        ease_factor=ease_factor,
        interval=interval,
        repetition_count=repetition_count,
        next_review_date=now + timedelta(days=interval),
        last_reviewed_at=now,
        card_id=current.card_id,
    )
